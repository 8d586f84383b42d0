from typing import List

from oracle_node.core.logger.logger import get_logger
from oracle_node.core.service.chain.contracts import AirnodeEvents
from oracle_node.core.service.requests.event_logs import EvmLog
from oracle_node.core.service.requests.models import LogMetadata, Withdrawal

logger = get_logger(__name__)


def initialize(log: EvmLog) -> Withdrawal:
    args = log.args
    return Withdrawal(
        id=args["withdrawalRequestId"],
        provider_id=args["providerId"],
        requester_id=args["requesterId"],
        # Requester data for a withdrawal is looked up by its destination
        requester_address=args["destination"],
        destination_address=args["destination"],
        metadata=LogMetadata(block_number=log.block_number, transaction_hash=log.transaction_hash),
    )


def map_requests(logs: List[EvmLog]) -> List[Withdrawal]:
    fulfilled_ids = {
        log.args["withdrawalRequestId"] for log in logs if log.name == AirnodeEvents.WITHDRAWAL_FULFILLED
    }

    withdrawals: List[Withdrawal] = []
    for log in logs:
        if log.name != AirnodeEvents.WITHDRAWAL_REQUEST:
            continue
        withdrawal = initialize(log)
        if withdrawal.id in fulfilled_ids:
            logger.debug("Withdrawal has already been fulfilled", extra={"request_id": withdrawal.id})
            continue
        withdrawals.append(withdrawal)
    return withdrawals
