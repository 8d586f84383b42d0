"""
Validation of pending requests.

Rules run in order and only ever touch requests that are still Pending:
reserved wallet index, insufficient balance, missing/unauthorized
authorization and, for API calls, a pending withdrawal on the same wallet.
"""

from typing import List, Optional, Set, TypeVar

from eth_utils import to_checksum_address

from oracle_node.core.logger.logger import get_logger
from oracle_node.core.service.requests.models import (
    ApiCall,
    AuthorizationsByEndpoint,
    BaseRequest,
    GroupedRequests,
    RequestErrorCode,
    RequestStatus,
)
from oracle_node.core.service.wallet.derivation import ADMIN_WALLET_INDEX

logger = get_logger(__name__)

R = TypeVar("R", bound=BaseRequest)


def _reject(request: R, status: RequestStatus, error_code: RequestErrorCode, reason: str) -> R:
    logger.info(
        reason,
        extra={"request_id": request.id, "status": status.value, "error_code": error_code.name}
    )
    return request.with_status(status, error_code)


def validate_wallet(request: R) -> R:
    if not request.pending:
        return request

    if request.wallet_index == ADMIN_WALLET_INDEX:
        return _reject(
            request, RequestStatus.ERRORED, RequestErrorCode.RESERVED_WALLET_INDEX,
            "Request uses the reserved admin wallet index"
        )

    if request.wallet_balance is not None and request.wallet_minimum_balance is not None:
        if request.wallet_balance < request.wallet_minimum_balance:
            return _reject(
                request, RequestStatus.ERRORED, RequestErrorCode.INSUFFICIENT_BALANCE,
                "Requester wallet balance is below the minimum balance"
            )

    return request


def _authorization(api_call: ApiCall, authorizations: AuthorizationsByEndpoint) -> Optional[bool]:
    by_requester = authorizations.get(api_call.endpoint_id)
    if by_requester is None or not api_call.requester_address:
        return None
    return by_requester.get(to_checksum_address(api_call.requester_address))


def validate_authorization(api_call: ApiCall, authorizations: AuthorizationsByEndpoint) -> ApiCall:
    if not api_call.pending:
        return api_call

    if not api_call.endpoint_id:
        return _reject(
            api_call, RequestStatus.BLOCKED, RequestErrorCode.TEMPLATE_NOT_FOUND,
            "Request has no endpoint to authorize against"
        )

    authorized = _authorization(api_call, authorizations)
    if authorized is None:
        return _reject(
            api_call, RequestStatus.BLOCKED, RequestErrorCode.AUTHORIZATION_NOT_FOUND,
            "Authorization status not found for request"
        )
    if not authorized:
        return _reject(
            api_call, RequestStatus.ERRORED, RequestErrorCode.UNAUTHORIZED_CLIENT,
            "Requester is not authorized for the endpoint"
        )
    return api_call


def validate_pending_withdrawal(api_call: ApiCall, withdrawal_indices: Set[int]) -> ApiCall:
    if not api_call.pending or api_call.wallet_index not in withdrawal_indices:
        return api_call
    return _reject(
        api_call, RequestStatus.IGNORED, RequestErrorCode.PENDING_WITHDRAWAL,
        "Ignoring request while a withdrawal is pending for its wallet"
    )


def validate(requests: GroupedRequests, authorizations: AuthorizationsByEndpoint) -> GroupedRequests:
    withdrawals = [validate_wallet(w) for w in requests.withdrawals]
    withdrawal_indices = {
        w.wallet_index for w in withdrawals if w.pending and w.wallet_index is not None
    }

    api_calls: List[ApiCall] = []
    for api_call in requests.api_calls:
        api_call = validate_wallet(api_call)
        api_call = validate_authorization(api_call, authorizations)
        api_call = validate_pending_withdrawal(api_call, withdrawal_indices)
        api_calls.append(api_call)

    return requests.model_copy(update={"api_calls": api_calls, "withdrawals": withdrawals})
