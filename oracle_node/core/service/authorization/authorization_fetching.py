import asyncio
from typing import List, Tuple

from eth_utils import to_checksum_address

from oracle_node.core.logger.logger import get_logger
from oracle_node.core.service.chain.client import ChainClient
from oracle_node.core.service.chain.contracts import CONVENIENCE_ABI
from oracle_node.core.service.requests.models import ApiCall, AuthorizationsByEndpoint
from oracle_node.core.utils.promise_utils import chunk, go, retry_operation
from oracle_node.infra.config.settings import Settings

logger = get_logger(__name__)

AuthorizationPair = Tuple[str, str]  # (endpoint id, requester address)


async def fetch_batch(
    client: ChainClient,
    convenience_address: str,
    pairs: List[AuthorizationPair],
    settings: Settings
) -> AuthorizationsByEndpoint:
    endpoint_ids = [endpoint_id for endpoint_id, _ in pairs]
    requester_addresses = [requester for _, requester in pairs]

    operation = lambda: client.call(
        convenience_address, CONVENIENCE_ABI, "checkAuthorizationStatuses", endpoint_ids, requester_addresses
    )
    result = await go(retry_operation(
        settings.RETRY_ATTEMPTS,
        operation,
        timeouts=settings.retry_timeouts,
        delay=settings.RETRY_DELAY_SECONDS,
    ))
    if not result.ok:
        logger.error(
            "Failed to fetch authorization details",
            extra={"endpoint_ids": endpoint_ids, "error": str(result.error)}
        )
        return {}

    authorizations: AuthorizationsByEndpoint = {}
    for (endpoint_id, requester), authorized in zip(pairs, result.value):
        authorizations.setdefault(endpoint_id, {})[requester] = bool(authorized)
    return authorizations


def unique_pairs(api_calls: List[ApiCall]) -> List[AuthorizationPair]:
    pairs = [
        (api_call.endpoint_id, to_checksum_address(api_call.requester_address))
        for api_call in api_calls
        if api_call.pending and api_call.endpoint_id and api_call.requester_address
    ]
    return list(dict.fromkeys(pairs))


async def fetch(
    client: ChainClient,
    convenience_address: str,
    api_calls: List[ApiCall],
    settings: Settings
) -> AuthorizationsByEndpoint:
    """Authorization status of every distinct (endpoint, requester) pair of the pending API calls"""
    pairs = unique_pairs(api_calls)
    if not pairs:
        return {}

    batches = chunk(pairs, settings.BATCH_SIZE)
    results = await asyncio.gather(*[
        fetch_batch(client, convenience_address, batch, settings) for batch in batches
    ])

    authorizations: AuthorizationsByEndpoint = {}
    for batch_authorizations in results:
        for endpoint_id, by_requester in batch_authorizations.items():
            authorizations.setdefault(endpoint_id, {}).update(by_requester)
    return authorizations
