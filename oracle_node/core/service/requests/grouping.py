from typing import Dict, List

from oracle_node.core.logger.logger import get_logger
from oracle_node.core.service.provider.models import WalletData
from oracle_node.core.service.requests.models import BaseRequest, GroupedRequests
from oracle_node.core.service.wallet.derivation import (
    ADMIN_WALLET_INDEX,
    ExtendedKeyError,
    derive_wallet_address,
)

logger = get_logger(__name__)


def _assignable(request: BaseRequest) -> bool:
    if request.wallet_index is None:
        logger.info("Request has no wallet index and will not be submitted", extra={"request_id": request.id})
        return False
    if request.wallet_index == ADMIN_WALLET_INDEX:
        logger.info("Request uses the admin wallet index and will not be submitted", extra={"request_id": request.id})
        return False
    return True


def group_requests_by_wallet_index(requests: GroupedRequests, xpub: str) -> Dict[int, WalletData]:
    """
    Assign every request to the wallet that will submit it.

    API calls and withdrawals go to their requester's wallet index. Wallet
    designations are submitted by the admin wallet, which only exists when at
    least one designation is pending.
    """
    api_calls: Dict[int, List] = {}
    withdrawals: Dict[int, List] = {}

    for api_call in requests.api_calls:
        if _assignable(api_call):
            api_calls.setdefault(api_call.wallet_index, []).append(api_call)
    for withdrawal in requests.withdrawals:
        if _assignable(withdrawal):
            withdrawals.setdefault(withdrawal.wallet_index, []).append(withdrawal)

    wallets: Dict[int, WalletData] = {}
    for index in sorted(set(api_calls) | set(withdrawals)):
        try:
            address = derive_wallet_address(xpub, index)
        except ExtendedKeyError as e:
            request_ids = [r.id for r in api_calls.get(index, []) + withdrawals.get(index, [])]
            logger.error(
                "Unable to derive wallet, requests will not be submitted",
                extra={"wallet_index": index, "request_ids": request_ids, "error": str(e)}
            )
            continue
        wallets[index] = WalletData(
            index=index,
            address=address,
            requests=GroupedRequests(
                api_calls=api_calls.get(index, []),
                withdrawals=withdrawals.get(index, []),
            ),
        )

    pending_designations = [d for d in requests.wallet_designations if d.pending]
    if pending_designations:
        wallets[ADMIN_WALLET_INDEX] = WalletData(
            index=ADMIN_WALLET_INDEX,
            address=derive_wallet_address(xpub, ADMIN_WALLET_INDEX),
            requests=GroupedRequests(wallet_designations=pending_designations),
        )

    return wallets
