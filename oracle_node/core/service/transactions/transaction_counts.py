import asyncio
from typing import Dict, Optional

from oracle_node.core.logger.logger import get_logger
from oracle_node.core.service.chain.client import ChainClient
from oracle_node.core.service.provider.models import WalletData
from oracle_node.core.service.requests.models import RequestStatus
from oracle_node.core.utils.promise_utils import go, retry_operation
from oracle_node.infra.config.settings import Settings

logger = get_logger(__name__)


def has_actionable_requests(wallet: WalletData) -> bool:
    """Whether the wallet will submit at least one transaction"""
    requests = wallet.requests
    return (
        any(a.status in (RequestStatus.PENDING, RequestStatus.ERRORED) for a in requests.api_calls)
        or any(w.pending for w in requests.withdrawals)
        or any(d.pending for d in requests.wallet_designations)
    )


async def fetch_by_address(client: ChainClient, address: str, settings: Settings) -> Optional[int]:
    result = await go(retry_operation(
        settings.RETRY_ATTEMPTS,
        lambda: client.get_transaction_count(address),
        timeouts=settings.retry_timeouts,
        delay=settings.RETRY_DELAY_SECONDS,
    ))
    if not result.ok:
        logger.error(
            "Unable to fetch transaction count",
            extra={"address": address, "error": str(result.error)}
        )
        return None

    logger.info("Transaction count fetched", extra={"address": address, "transaction_count": result.value})
    return result.value


async def fetch(
    client: ChainClient,
    wallets: Dict[int, WalletData],
    settings: Settings
) -> Dict[int, WalletData]:
    """Set the transaction count of every wallet with something to submit, in parallel"""
    indices = [index for index, wallet in wallets.items() if has_actionable_requests(wallet)]
    counts = await asyncio.gather(*[
        fetch_by_address(client, wallets[index].address, settings) for index in indices
    ])

    updated = dict(wallets)
    for index, count in zip(indices, counts):
        updated[index] = wallets[index].model_copy(update={"transaction_count": count})
    return updated
