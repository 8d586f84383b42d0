from typing import Dict, List

from oracle_node.core.logger.logger import get_logger
from oracle_node.core.service.requests.models import (
    ApiCall,
    ApiCallTemplate,
    RequestErrorCode,
    RequestStatus,
)
from oracle_node.core.service.requests.parameters import safe_decode_parameters

logger = get_logger(__name__)

TEMPLATE_FIELDS = (
    "endpoint_id",
    "fulfill_address",
    "fulfill_function_id",
    "error_address",
    "error_function_id",
)


def merge_api_call_with_template(api_call: ApiCall, template: ApiCallTemplate) -> ApiCall:
    """The request's own values win; the template fills the gaps."""
    changes = {
        field: getattr(template, field)
        for field in TEMPLATE_FIELDS
        if getattr(api_call, field) is None
    }
    return api_call.update(**changes)


def apply_template(api_call: ApiCall, templates_by_id: Dict[str, ApiCallTemplate]) -> ApiCall:
    if not api_call.template_id:
        return api_call

    template = templates_by_id.get(api_call.template_id)
    if template is None:
        if not api_call.pending:
            return api_call
        logger.error(
            "Unable to fetch template for request",
            extra={"request_id": api_call.id, "template_id": api_call.template_id}
        )
        return api_call.with_status(RequestStatus.BLOCKED, RequestErrorCode.TEMPLATE_NOT_FOUND)

    merged = merge_api_call_with_template(api_call, template)

    template_parameters = safe_decode_parameters(template.encoded_parameters)
    if template_parameters is None:
        if not merged.pending:
            return merged
        logger.error(
            "Template has invalid parameters",
            extra={"request_id": api_call.id, "template_id": template.template_id}
        )
        return merged.with_status(RequestStatus.ERRORED, RequestErrorCode.INVALID_TEMPLATE_PARAMETERS)

    return merged.update(parameters={**template_parameters, **api_call.parameters})


def apply(api_calls: List[ApiCall], templates_by_id: Dict[str, ApiCallTemplate]) -> List[ApiCall]:
    return [apply_template(api_call, templates_by_id) for api_call in api_calls]
