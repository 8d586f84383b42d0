"""
Error handling for chain cycles.
A failing chain is logged with its context and reported as a failed summary,
without interrupting the cycles of the other chains.
"""

import traceback
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import BaseModel, Field

from oracle_node.core.logger.logger import get_logger
from oracle_node.core.exceptions.base import CycleErrorCode, FatalCycleError
from oracle_node.infra.config.settings import ChainSettings

logger = get_logger(__name__)


class CycleSummary(BaseModel):
    """Outcome of one chain cycle"""
    chain: str
    chain_id: int
    success: bool
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    submitted: int = 0
    details: Dict[str, Any] = Field(default_factory=dict)


class CycleErrorHandler:
    """Runs a chain cycle and converts its failures into summaries"""

    @staticmethod
    def fatal_error_handler(chain: ChainSettings, exc: FatalCycleError) -> CycleSummary:
        """Handle errors that abort a cycle by design"""
        logger.error(
            f"Chain cycle aborted: {exc.code}",
            extra={
                "chain": chain.name,
                "chain_id": chain.chain_id,
                "error_code": exc.code,
                "error_message": exc.message,
                "details": exc.details,
                "context": exc.context,
            }
        )
        return CycleSummary(
            chain=chain.name,
            chain_id=chain.chain_id,
            success=False,
            error_code=exc.code,
            error_message=exc.message,
            details=exc.details,
        )

    @staticmethod
    def general_exception_handler(chain: ChainSettings, exc: Exception) -> CycleSummary:
        """Handle unexpected exceptions"""
        logger.error(
            f"Unexpected error: {type(exc).__name__}",
            extra={
                "chain": chain.name,
                "chain_id": chain.chain_id,
                "error_type": type(exc).__name__,
                "error_message": str(exc),
                "traceback": traceback.format_exc(),
            },
            exc_info=True
        )
        return CycleSummary(
            chain=chain.name,
            chain_id=chain.chain_id,
            success=False,
            error_code=CycleErrorCode.INTERNAL_ERROR,
            error_message=str(exc),
        )

    @classmethod
    async def run(
        cls,
        chain: ChainSettings,
        cycle: Callable[[], Awaitable[CycleSummary]]
    ) -> CycleSummary:
        try:
            return await cycle()
        except FatalCycleError as exc:
            return cls.fatal_error_handler(chain, exc)
        except Exception as exc:
            return cls.general_exception_handler(chain, exc)
