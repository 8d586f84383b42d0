"""Models for on-chain requests."""

from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class RequestStatus(str, Enum):
    """Lifecycle of a request within one cycle"""
    PENDING = "Pending"
    BLOCKED = "Blocked"
    ERRORED = "Errored"
    FULFILLED = "Fulfilled"
    IGNORED = "Ignored"


class RequestErrorCode(IntEnum):
    """Reason a request cannot be served. The value is sent on-chain with `error`."""
    INVALID_OIS = 1
    INVALID_RESPONSE_PARAMETERS = 2
    API_CALL_FAILED = 3
    RESPONSE_VALUE_NOT_FOUND = 4
    TEMPLATE_NOT_FOUND = 5
    INVALID_TEMPLATE_PARAMETERS = 6
    AUTHORIZATION_NOT_FOUND = 7
    UNAUTHORIZED_CLIENT = 8
    RESERVED_WALLET_INDEX = 9
    INSUFFICIENT_BALANCE = 10
    REQUESTER_DATA_NOT_FOUND = 11
    INVALID_REQUEST_PARAMETERS = 12
    PENDING_WITHDRAWAL = 13


class ApiCallType(str, Enum):
    """Which request event created an API call"""
    REGULAR = "regular"
    SHORT = "short"
    FULL = "full"


class LogMetadata(BaseModel):
    block_number: int
    transaction_hash: str


class BaseRequest(BaseModel):
    """Fields shared by every request kind."""
    id: str
    status: RequestStatus = RequestStatus.PENDING
    error_code: Optional[RequestErrorCode] = None
    requester_address: Optional[str] = None
    metadata: LogMetadata

    # Filled in from requester data
    requester_id: Optional[str] = None
    wallet_index: Optional[int] = None
    wallet_address: Optional[str] = None
    wallet_balance: Optional[int] = None
    wallet_minimum_balance: Optional[int] = None

    class Config:
        frozen = True

    @property
    def valid(self) -> bool:
        return self.error_code is None

    @property
    def pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    def update(self, **changes: Any):
        return self.model_copy(update=changes)

    def with_status(self, status: RequestStatus, error_code: Optional[RequestErrorCode] = None):
        return self.model_copy(update={"status": status, "error_code": error_code})


class ApiCall(BaseRequest):
    provider_id: str
    request_type: ApiCallType = ApiCallType.REGULAR
    endpoint_id: Optional[str] = None
    template_id: Optional[str] = None
    fulfill_address: Optional[str] = None
    fulfill_function_id: Optional[str] = None
    error_address: Optional[str] = None
    error_function_id: Optional[str] = None
    encoded_parameters: Optional[str] = None
    parameters: Dict[str, Any] = Field(default_factory=dict)
    response_value: Optional[str] = None


class Withdrawal(BaseRequest):
    """Withdrawal of a requester wallet balance. `requester_address` is the destination."""
    provider_id: str
    destination_address: str


class WalletDesignation(BaseRequest):
    """Designation of a wallet index to a requester, fulfilled by the admin wallet"""
    provider_id: str
    designated_wallet_index: int
    deposit_amount: int


class ApiCallTemplate(BaseModel):
    template_id: str
    provider_id: str
    endpoint_id: str
    fulfill_address: str
    fulfill_function_id: str
    error_address: str
    error_function_id: str
    encoded_parameters: str

    class Config:
        frozen = True


class RequesterData(BaseModel):
    """Requester's designated wallet as reported by the Convenience contract"""
    requester_id: str
    wallet_index: int
    wallet_address: str
    wallet_balance: int
    minimum_balance: int

    class Config:
        frozen = True


class GroupedRequests(BaseModel):
    api_calls: List[ApiCall] = Field(default_factory=list)
    withdrawals: List[Withdrawal] = Field(default_factory=list)
    wallet_designations: List[WalletDesignation] = Field(default_factory=list)

    class Config:
        frozen = True

    def all(self) -> List[BaseRequest]:
        return [*self.api_calls, *self.withdrawals, *self.wallet_designations]

    def has_pending(self) -> bool:
        return any(request.pending for request in self.all())


# endpoint id -> requester address -> authorized
AuthorizationsByEndpoint = Dict[str, Dict[str, bool]]
