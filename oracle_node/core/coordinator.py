"""
Coordinator running the polling cycles of every configured chain.
Chains run in parallel; a failure on one chain never stops the others.
"""

import asyncio
from typing import Callable, List, Optional

from oracle_node.core.exceptions.handler import CycleErrorHandler, CycleSummary
from oracle_node.core.logger.logger import get_logger
from oracle_node.core.service.api_caller.base import ApiCaller
from oracle_node.core.service.api_caller.http_api_caller import HttpApiCaller
from oracle_node.core.service.chain.client import ChainClient
from oracle_node.core.service.provider.process import run_provider_cycle
from oracle_node.infra.config.settings import ChainSettings, Settings

logger = get_logger(__name__)

ClientFactory = Callable[[ChainSettings], ChainClient]


def default_client_factory(chain: ChainSettings) -> ChainClient:
    return ChainClient(chain.rpc_url, chain.chain_id)


def create_api_caller(settings: Settings) -> ApiCaller:
    if not settings.API_GATEWAY_URL:
        raise ValueError("API_GATEWAY_URL is not configured")
    return HttpApiCaller(
        settings.API_GATEWAY_URL,
        timeout=settings.API_CALL_TIMEOUT_SECONDS,
        token=settings.API_GATEWAY_TOKEN,
    )


class Coordinator:
    def __init__(
        self,
        settings: Settings,
        api_caller: Optional[ApiCaller] = None,
        client_factory: ClientFactory = default_client_factory
    ):
        self.settings = settings
        self.api_caller = api_caller or create_api_caller(settings)
        self.client_factory = client_factory

    async def run_chain_cycle(self, chain: ChainSettings) -> CycleSummary:
        return await CycleErrorHandler.run(
            chain,
            lambda: run_provider_cycle(chain, self.settings, self.api_caller, self.client_factory(chain))
        )

    async def run_cycle(self) -> List[CycleSummary]:
        """Run one cycle on every chain"""
        if not self.settings.CHAINS:
            logger.warning("No chains configured")
            return []

        summaries = await asyncio.gather(*[self.run_chain_cycle(chain) for chain in self.settings.CHAINS])

        logger.info(
            "Cycle finished",
            extra={
                "chains": len(summaries),
                "failed_chains": [s.chain for s in summaries if not s.success],
                "submitted": sum(s.submitted for s in summaries),
            }
        )
        return list(summaries)

    async def run_forever(self) -> None:
        logger.info(
            f"Starting {self.settings.APP_NAME} v{self.settings.APP_VERSION}",
            extra={
                "chains": [chain.name for chain in self.settings.CHAINS],
                "polling_interval_seconds": self.settings.POLLING_INTERVAL_SECONDS,
            }
        )
        while True:
            await self.run_cycle()
            await asyncio.sleep(self.settings.POLLING_INTERVAL_SECONDS)
