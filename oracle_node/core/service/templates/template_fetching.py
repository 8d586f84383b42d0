import asyncio
from typing import Dict, List

from eth_utils import to_checksum_address, to_hex

from oracle_node.core.logger.logger import get_logger
from oracle_node.core.service.chain.client import ChainClient
from oracle_node.core.service.chain.contracts import CONVENIENCE_ABI
from oracle_node.core.service.requests.models import ApiCall, ApiCallTemplate
from oracle_node.core.utils.promise_utils import chunk, go, retry_operation
from oracle_node.infra.config.settings import Settings

logger = get_logger(__name__)


def _hex(value) -> str:
    return to_hex(value) if isinstance(value, (bytes, bytearray)) else value


async def fetch_batch(
    client: ChainClient,
    convenience_address: str,
    template_ids: List[str],
    settings: Settings
) -> Dict[str, ApiCallTemplate]:
    operation = lambda: client.call(convenience_address, CONVENIENCE_ABI, "getTemplates", template_ids)
    result = await go(retry_operation(
        settings.RETRY_ATTEMPTS,
        operation,
        timeouts=settings.retry_timeouts,
        delay=settings.RETRY_DELAY_SECONDS,
    ))
    if not result.ok:
        logger.error(
            "Failed to fetch API call templates",
            extra={"template_ids": template_ids, "error": str(result.error)}
        )
        return {}

    try:
        return _parse_batch(template_ids, result.value)
    except (IndexError, TypeError, ValueError) as e:
        logger.error(
            "Invalid API call template response",
            extra={"template_ids": template_ids, "error": str(e)}
        )
        return {}


def _parse_batch(template_ids: List[str], response) -> Dict[str, ApiCallTemplate]:
    (
        provider_ids,
        endpoint_ids,
        fulfill_addresses,
        error_addresses,
        fulfill_function_ids,
        error_function_ids,
        parameters,
    ) = response
    columns = (
        provider_ids,
        endpoint_ids,
        fulfill_addresses,
        error_addresses,
        fulfill_function_ids,
        error_function_ids,
        parameters,
    )
    if any(len(column) != len(template_ids) for column in columns):
        raise ValueError(f"Expected {len(template_ids)} entries per column")

    templates: Dict[str, ApiCallTemplate] = {}
    for i, template_id in enumerate(template_ids):
        templates[template_id] = ApiCallTemplate(
            template_id=template_id,
            provider_id=_hex(provider_ids[i]),
            endpoint_id=_hex(endpoint_ids[i]),
            fulfill_address=to_checksum_address(fulfill_addresses[i]),
            fulfill_function_id=_hex(fulfill_function_ids[i]),
            error_address=to_checksum_address(error_addresses[i]),
            error_function_id=_hex(error_function_ids[i]),
            encoded_parameters=_hex(parameters[i]),
        )
    return templates


async def fetch(
    client: ChainClient,
    convenience_address: str,
    api_calls: List[ApiCall],
    settings: Settings
) -> Dict[str, ApiCallTemplate]:
    """Templates referenced by the API calls, keyed by template id"""
    template_ids = list(dict.fromkeys(a.template_id for a in api_calls if a.template_id))
    if not template_ids:
        return {}

    batches = chunk(template_ids, settings.BATCH_SIZE)
    results = await asyncio.gather(*[
        fetch_batch(client, convenience_address, batch, settings) for batch in batches
    ])

    templates: Dict[str, ApiCallTemplate] = {}
    for batch_templates in results:
        templates.update(batch_templates)
    return templates
