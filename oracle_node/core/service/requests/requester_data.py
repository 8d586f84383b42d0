import asyncio
from typing import Dict, List, Optional

from eth_utils import to_checksum_address, to_hex

from oracle_node.core.logger.logger import get_logger
from oracle_node.core.service.chain.client import ChainClient
from oracle_node.core.service.chain.contracts import CONVENIENCE_ABI
from oracle_node.core.service.requests.models import (
    BaseRequest,
    GroupedRequests,
    RequestErrorCode,
    RequestStatus,
    RequesterData,
)
from oracle_node.core.utils.promise_utils import chunk, go, retry_operation
from oracle_node.infra.config.settings import Settings

logger = get_logger(__name__)


def _hex(value) -> str:
    return to_hex(value) if isinstance(value, (bytes, bytearray)) else value


async def fetch_batch(
    client: ChainClient,
    convenience_address: str,
    provider_id: str,
    addresses: List[str],
    settings: Settings
) -> Dict[str, RequesterData]:
    operation = lambda: client.call(
        convenience_address, CONVENIENCE_ABI, "getDataWithClientAddresses", provider_id, addresses
    )
    result = await go(retry_operation(
        settings.RETRY_ATTEMPTS,
        operation,
        timeouts=settings.retry_timeouts,
        delay=settings.RETRY_DELAY_SECONDS,
    ))
    if not result.ok:
        logger.error(
            "Failed to fetch requester data",
            extra={"addresses": addresses, "error": str(result.error)}
        )
        return {}

    try:
        return _parse_batch(addresses, result.value)
    except (IndexError, TypeError, ValueError) as e:
        logger.error(
            "Invalid requester data response",
            extra={"addresses": addresses, "error": str(e)}
        )
        return {}


def _parse_batch(addresses: List[str], response) -> Dict[str, RequesterData]:
    requester_ids, wallet_inds, wallet_addresses, wallet_balances, min_balances = response
    columns = (requester_ids, wallet_inds, wallet_addresses, wallet_balances, min_balances)
    if any(len(column) != len(addresses) for column in columns):
        raise ValueError(f"Expected {len(addresses)} entries per column")

    data: Dict[str, RequesterData] = {}
    for i, address in enumerate(addresses):
        data[address] = RequesterData(
            requester_id=_hex(requester_ids[i]),
            wallet_index=int(wallet_inds[i]),
            wallet_address=to_checksum_address(wallet_addresses[i]),
            wallet_balance=int(wallet_balances[i]),
            minimum_balance=int(min_balances[i]),
        )
    return data


def _requester_addresses(requests: GroupedRequests) -> List[str]:
    addresses = [a.requester_address for a in requests.api_calls if a.requester_address]
    addresses += [w.destination_address for w in requests.withdrawals]
    # Keep first-seen order so batches are deterministic
    return list(dict.fromkeys(to_checksum_address(address) for address in addresses))


async def fetch(
    client: ChainClient,
    convenience_address: str,
    provider_id: str,
    requests: GroupedRequests,
    settings: Settings
) -> Dict[str, RequesterData]:
    """Requester data keyed by checksummed requester address, in parallel batches"""
    addresses = _requester_addresses(requests)
    if not addresses:
        return {}

    batches = chunk(addresses, settings.BATCH_SIZE)
    results = await asyncio.gather(*[
        fetch_batch(client, convenience_address, provider_id, batch, settings) for batch in batches
    ])

    data: Dict[str, RequesterData] = {}
    for batch_data in results:
        data.update(batch_data)
    return data


def apply_to_request(request: BaseRequest, data: Optional[RequesterData]) -> BaseRequest:
    if data is None:
        if not request.pending:
            return request
        logger.error(
            "Unable to find requester data for request",
            extra={"request_id": request.id, "requester_address": request.requester_address}
        )
        return request.with_status(RequestStatus.BLOCKED, RequestErrorCode.REQUESTER_DATA_NOT_FOUND)

    return request.update(
        requester_id=data.requester_id,
        wallet_index=data.wallet_index,
        wallet_address=data.wallet_address,
        wallet_balance=data.wallet_balance,
        wallet_minimum_balance=data.minimum_balance,
    )


def _lookup(data: Dict[str, RequesterData], address: Optional[str]) -> Optional[RequesterData]:
    if not address:
        return None
    return data.get(to_checksum_address(address))


def apply(requests: GroupedRequests, data: Dict[str, RequesterData]) -> GroupedRequests:
    api_calls = [apply_to_request(a, _lookup(data, a.requester_address)) for a in requests.api_calls]
    withdrawals = [apply_to_request(w, _lookup(data, w.destination_address)) for w in requests.withdrawals]
    return requests.model_copy(update={"api_calls": api_calls, "withdrawals": withdrawals})
