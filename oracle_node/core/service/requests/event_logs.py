"""Fetching, parsing and grouping of Airnode contract event logs."""

from typing import Any, Dict, List, Optional

from eth_abi import decode
from eth_utils import to_checksum_address, to_hex
from pydantic import BaseModel, Field

from oracle_node.core.exceptions.base import EventLogsUnavailableError
from oracle_node.core.logger.logger import get_logger
from oracle_node.core.service.chain.client import ChainClient
from oracle_node.core.service.chain.contracts import AIRNODE_EVENTS_BY_TOPIC, AirnodeEvents
from oracle_node.core.utils.promise_utils import go

logger = get_logger(__name__)


class EvmLog(BaseModel):
    """A decoded Airnode event"""
    name: str
    args: Dict[str, Any]
    block_number: int
    transaction_hash: str

    class Config:
        frozen = True


class GroupedLogs(BaseModel):
    api_calls: List[EvmLog] = Field(default_factory=list)
    withdrawals: List[EvmLog] = Field(default_factory=list)
    wallet_designations: List[EvmLog] = Field(default_factory=list)


def _hex(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return to_hex(value)
    return str(value).lower()


def _convert(abi_type: str, value: Any) -> Any:
    if abi_type == "address":
        return to_checksum_address(value)
    if abi_type.startswith("bytes"):
        return to_hex(value)
    return value


def parse_log(log: Dict[str, Any]) -> Optional[EvmLog]:
    """Decode a raw log against the Airnode ABI. Returns None for unknown topics."""
    topics = log.get("topics") or []
    if not topics:
        return None

    event_abi = AIRNODE_EVENTS_BY_TOPIC.get(_hex(topics[0]))
    if event_abi is None:
        return None

    indexed = [i for i in event_abi["inputs"] if i["indexed"]]
    non_indexed = [i for i in event_abi["inputs"] if not i["indexed"]]

    args: Dict[str, Any] = {}
    for abi_input, topic in zip(indexed, topics[1:]):
        topic_bytes = bytes.fromhex(_hex(topic)[2:])
        (value,) = decode([abi_input["type"]], topic_bytes)
        args[abi_input["name"]] = _convert(abi_input["type"], value)

    data = log.get("data") or b""
    if isinstance(data, str):
        data = bytes.fromhex(data[2:] if data.startswith("0x") else data)
    values = decode([i["type"] for i in non_indexed], data)
    for abi_input, value in zip(non_indexed, values):
        args[abi_input["name"]] = _convert(abi_input["type"], value)

    return EvmLog(
        name=event_abi["name"],
        args=args,
        block_number=int(log.get("blockNumber") or 0),
        transaction_hash=_hex(log.get("transactionHash") or "0x"),
    )


async def fetch(
    client: ChainClient,
    airnode_address: str,
    provider_id: str,
    current_block: int,
    block_history_limit: int
) -> List[EvmLog]:
    """
    Fetch and decode the provider's logs in the recent block window.

    Raises:
        EventLogsUnavailableError: If the logs cannot be fetched
    """
    from_block = max(0, current_block - block_history_limit)
    result = await go(client.get_logs(
        airnode_address,
        topics=[None, provider_id],
        from_block=from_block,
        to_block=current_block,
    ))
    if not result.ok:
        raise EventLogsUnavailableError(
            details={"from_block": from_block, "to_block": current_block, "error": str(result.error)}
        )

    parsed_logs: List[EvmLog] = []
    for raw_log in result.value:
        try:
            parsed = parse_log(raw_log)
        except Exception as e:
            logger.warning(
                "Unable to decode event log",
                extra={"transaction_hash": _hex(raw_log.get("transactionHash") or "0x"), "error": str(e)}
            )
            continue
        if parsed is None:
            logger.warning(
                "Ignoring log with unknown topic",
                extra={"transaction_hash": _hex(raw_log.get("transactionHash") or "0x")}
            )
            continue
        parsed_logs.append(parsed)

    logger.debug(
        "Fetched event logs",
        extra={"from_block": from_block, "to_block": current_block, "count": len(parsed_logs)}
    )
    return parsed_logs


def group(logs: List[EvmLog]) -> GroupedLogs:
    grouped = GroupedLogs()
    for log in logs:
        if log.name in AirnodeEvents.API_CALL_REQUESTS or log.name in AirnodeEvents.API_CALL_FULFILLMENTS:
            grouped.api_calls.append(log)
        elif log.name in (AirnodeEvents.WITHDRAWAL_REQUEST, AirnodeEvents.WITHDRAWAL_FULFILLED):
            grouped.withdrawals.append(log)
        elif log.name in (AirnodeEvents.WALLET_DESIGNATION_REQUEST, AirnodeEvents.WALLET_DESIGNATION_FULFILLED):
            grouped.wallet_designations.append(log)
    return grouped
