"""
Builds the provider state of one chain cycle: everything the node needs to
know before calling APIs and submitting transactions.
"""

import asyncio

from oracle_node.core.exceptions.base import BlockNumberUnavailableError, ConfigurationError
from oracle_node.core.logger.logger import get_logger
from oracle_node.core.service.authorization import authorization_fetching
from oracle_node.core.service.chain.client import ChainClient
from oracle_node.core.service.provider.models import ProviderState
from oracle_node.core.service.requests import (
    api_calls,
    event_logs,
    grouping,
    requester_data,
    validation,
    wallet_designations,
    withdrawals,
)
from oracle_node.core.service.requests.models import GroupedRequests
from oracle_node.core.service.templates import template_application, template_fetching
from oracle_node.core.service.transactions import gas_prices, transaction_counts
from oracle_node.core.service.wallet.derivation import get_extended_public_key
from oracle_node.core.utils.promise_utils import go
from oracle_node.infra.config.settings import ChainSettings, Settings

logger = get_logger(__name__)


def create_state(chain: ChainSettings, settings: Settings) -> ProviderState:
    if not settings.MASTER_MNEMONIC:
        raise ConfigurationError("MASTER_MNEMONIC is not configured", context={"chain": chain.name})
    return ProviderState(
        chain=chain,
        provider_id=settings.PROVIDER_ID,
        master_mnemonic=settings.MASTER_MNEMONIC,
        xpub=get_extended_public_key(settings.MASTER_MNEMONIC),
    )


async def fetch_current_block(client: ChainClient, state: ProviderState) -> ProviderState:
    result = await go(client.get_block_number())
    if not result.ok:
        raise BlockNumberUnavailableError(context=state.log_context, details={"error": str(result.error)})

    logger.info("Current block fetched", extra={**state.log_context, "block_number": result.value})
    return state.model_copy(update={"current_block": result.value})


async def fetch_pending_requests(client: ChainClient, state: ProviderState, settings: Settings) -> ProviderState:
    logs = await event_logs.fetch(
        client,
        state.chain.airnode_address,
        state.provider_id,
        state.current_block,
        settings.BLOCK_HISTORY_LIMIT,
    )
    grouped_logs = event_logs.group(logs)

    requests = GroupedRequests(
        api_calls=api_calls.map_requests(grouped_logs.api_calls),
        withdrawals=withdrawals.map_requests(grouped_logs.withdrawals),
        wallet_designations=wallet_designations.map_requests(grouped_logs.wallet_designations),
    )

    logger.info(
        "Pending requests found",
        extra={
            **state.log_context,
            "api_calls": len(requests.api_calls),
            "withdrawals": len(requests.withdrawals),
            "wallet_designations": len(requests.wallet_designations),
        }
    )
    return state.model_copy(update={"requests": requests})


async def apply_requester_data_and_templates(
    client: ChainClient,
    state: ProviderState,
    settings: Settings
) -> ProviderState:
    convenience_address = state.chain.convenience_address
    data_by_address, templates_by_id = await asyncio.gather(
        requester_data.fetch(client, convenience_address, state.provider_id, state.requests, settings),
        template_fetching.fetch(client, convenience_address, state.requests.api_calls, settings),
    )

    requests = requester_data.apply(state.requests, data_by_address)
    requests = requests.model_copy(
        update={"api_calls": template_application.apply(requests.api_calls, templates_by_id)}
    )
    return state.model_copy(update={"requests": requests})


async def authorize_and_validate(client: ChainClient, state: ProviderState, settings: Settings) -> ProviderState:
    authorizations = await authorization_fetching.fetch(
        client, state.chain.convenience_address, state.requests.api_calls, settings
    )
    requests = validation.validate(state.requests, authorizations)
    return state.model_copy(update={"requests": requests})


async def fetch_transaction_data(client: ChainClient, state: ProviderState, settings: Settings) -> ProviderState:
    wallets, gas_price = await asyncio.gather(
        transaction_counts.fetch(client, state.wallet_data_by_index, settings),
        gas_prices.get_gas_price(client, settings),
    )
    return state.model_copy(update={"wallet_data_by_index": wallets, "gas_price": gas_price})


async def initialize_provider(client: ChainClient, chain: ChainSettings, settings: Settings) -> ProviderState:
    """
    Fetch and validate the provider's pending requests and group them by wallet.

    Raises:
        FatalCycleError: If the block number or the event logs are unavailable
    """
    state = create_state(chain, settings)
    state = await fetch_current_block(client, state)
    state = await fetch_pending_requests(client, state, settings)
    state = await apply_requester_data_and_templates(client, state, settings)
    state = await authorize_and_validate(client, state, settings)

    wallets = grouping.group_requests_by_wallet_index(state.requests, state.xpub)
    state = state.model_copy(update={"wallet_data_by_index": wallets})

    return await fetch_transaction_data(client, state, settings)
