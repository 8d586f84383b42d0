from typing import Optional

from oracle_node.core.exceptions.handler import CycleSummary
from oracle_node.core.logger.logger import get_logger
from oracle_node.core.service.api_caller.api_calling import call_apis
from oracle_node.core.service.api_caller.base import ApiCaller
from oracle_node.core.service.chain.client import ChainClient
from oracle_node.core.service.provider.initialize import initialize_provider
from oracle_node.core.service.transactions import submitting
from oracle_node.infra.config.settings import ChainSettings, Settings

logger = get_logger(__name__)


async def run_provider_cycle(
    chain: ChainSettings,
    settings: Settings,
    api_caller: ApiCaller,
    client: Optional[ChainClient] = None
) -> CycleSummary:
    """One polling cycle on one chain: initialize, call APIs, submit transactions"""
    client = client or ChainClient(chain.rpc_url, chain.chain_id)

    state = await initialize_provider(client, chain, settings)
    state = await call_apis(state, api_caller)
    summary = await submitting.submit(client, state, settings)

    logger.info(
        "Chain cycle finished",
        extra={
            **state.log_context,
            "block_number": state.current_block,
            "wallets": len(state.wallet_data_by_index),
            "submitted": len(summary.receipts),
            "skipped_wallets": summary.skipped_wallets,
        }
    )
    return CycleSummary(
        chain=chain.name,
        chain_id=chain.chain_id,
        success=True,
        submitted=len(summary.receipts),
        details={
            "block_number": state.current_block,
            "receipts": [receipt.model_dump() for receipt in summary.receipts],
            "skipped_wallets": summary.skipped_wallets,
        },
    )
