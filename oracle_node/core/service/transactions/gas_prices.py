from typing import Optional

from oracle_node.core.logger.logger import get_logger
from oracle_node.core.service.chain.client import ChainClient
from oracle_node.core.utils.promise_utils import go, retry_operation
from oracle_node.infra.config.settings import Settings

logger = get_logger(__name__)


async def get_gas_price(client: ChainClient, settings: Settings) -> Optional[int]:
    """Current gas price in wei, or None when it cannot be fetched. There is no fallback price."""
    result = await go(retry_operation(
        settings.RETRY_ATTEMPTS,
        client.get_gas_price,
        timeouts=settings.retry_timeouts,
        delay=settings.RETRY_DELAY_SECONDS,
    ))
    if not result.ok:
        logger.error("Unable to fetch gas price", extra={"error": str(result.error)})
        return None

    logger.info("Gas price fetched", extra={"gas_price_wei": result.value})
    return result.value
