from typing import Dict, List

from oracle_node.core.logger.logger import get_logger
from oracle_node.core.service.chain.contracts import AirnodeEvents
from oracle_node.core.service.requests.event_logs import EvmLog
from oracle_node.core.service.requests.models import LogMetadata, WalletDesignation

logger = get_logger(__name__)


def initialize(log: EvmLog) -> WalletDesignation:
    args = log.args
    return WalletDesignation(
        id=args["walletDesignationRequestId"],
        provider_id=args["providerId"],
        requester_id=args["requesterId"],
        designated_wallet_index=int(args["walletInd"]),
        deposit_amount=int(args["depositAmount"]),
        metadata=LogMetadata(block_number=log.block_number, transaction_hash=log.transaction_hash),
    )


def filter_duplicates(designations: List[WalletDesignation]) -> List[WalletDesignation]:
    """The request event can be rebroadcast; keep the first designation per id"""
    unique: Dict[str, WalletDesignation] = {}
    for designation in designations:
        if designation.id in unique:
            logger.info("Ignored duplicate wallet designation request", extra={"request_id": designation.id})
            continue
        unique[designation.id] = designation
    return list(unique.values())


def map_requests(logs: List[EvmLog]) -> List[WalletDesignation]:
    fulfilled_ids = {
        log.args["walletDesignationRequestId"]
        for log in logs
        if log.name == AirnodeEvents.WALLET_DESIGNATION_FULFILLED
    }

    designations: List[WalletDesignation] = []
    for log in logs:
        if log.name != AirnodeEvents.WALLET_DESIGNATION_REQUEST:
            continue
        designation = initialize(log)
        if designation.id in fulfilled_ids:
            logger.debug("Wallet designation has already been fulfilled", extra={"request_id": designation.id})
            continue
        designations.append(designation)

    return filter_duplicates(designations)
