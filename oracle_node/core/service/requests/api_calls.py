from typing import List, Set

from oracle_node.core.logger.logger import get_logger
from oracle_node.core.service.chain.contracts import AirnodeEvents
from oracle_node.core.service.requests.event_logs import EvmLog
from oracle_node.core.service.requests.models import (
    ApiCall,
    ApiCallType,
    LogMetadata,
    RequestErrorCode,
    RequestStatus,
)
from oracle_node.core.service.requests.parameters import safe_decode_parameters

logger = get_logger(__name__)

REQUEST_TYPES = {
    AirnodeEvents.API_CALL_REQUEST: ApiCallType.REGULAR,
    AirnodeEvents.API_CALL_SHORT_REQUEST: ApiCallType.SHORT,
    AirnodeEvents.API_CALL_FULL_REQUEST: ApiCallType.FULL,
}


def initialize(log: EvmLog) -> ApiCall:
    args = log.args
    return ApiCall(
        id=args["requestId"],
        requester_address=args["requester"],
        provider_id=args["providerId"],
        request_type=REQUEST_TYPES[log.name],
        endpoint_id=args.get("endpointId"),
        template_id=args.get("templateId"),
        fulfill_address=args.get("fulfillAddress"),
        fulfill_function_id=args.get("fulfillFunctionId"),
        error_address=args.get("errorAddress"),
        error_function_id=args.get("errorFunctionId"),
        encoded_parameters=args.get("parameters"),
        metadata=LogMetadata(block_number=log.block_number, transaction_hash=log.transaction_hash),
    )


def apply_parameters(api_call: ApiCall) -> ApiCall:
    if not api_call.encoded_parameters:
        return api_call

    parameters = safe_decode_parameters(api_call.encoded_parameters)
    if parameters is None:
        logger.error(
            "Request submitted with invalid parameters",
            extra={"request_id": api_call.id, "encoded_parameters": api_call.encoded_parameters}
        )
        return api_call.with_status(RequestStatus.ERRORED, RequestErrorCode.INVALID_REQUEST_PARAMETERS)

    return api_call.update(parameters=parameters)


def map_requests(logs: List[EvmLog]) -> List[ApiCall]:
    """Build API calls from request logs, dropping the ones already fulfilled in the window"""
    request_logs = [log for log in logs if log.name in AirnodeEvents.API_CALL_REQUESTS]
    fulfilled_ids: Set[str] = {
        log.args["requestId"] for log in logs if log.name in AirnodeEvents.API_CALL_FULFILLMENTS
    }

    api_calls: List[ApiCall] = []
    for log in request_logs:
        api_call = initialize(log)
        if api_call.id in fulfilled_ids:
            logger.debug("Request has already been fulfilled", extra={"request_id": api_call.id})
            continue
        api_calls.append(apply_parameters(api_call))
    return api_calls
