"""
Boundary to the off-chain API calling layer.
The node only needs an encoded response value, or an error code explaining why
there is none.
"""

from abc import ABC, abstractmethod
from typing import Optional
from pydantic import BaseModel

from oracle_node.core.service.requests.models import ApiCall, RequestErrorCode


class ApiCallResponse(BaseModel):
    """Result of calling the API behind an endpoint"""
    value: Optional[str] = None  # bytes32 hex
    error_code: Optional[RequestErrorCode] = None
    message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error_code is None and self.value is not None


class ApiCaller(ABC):
    """Calls the API behind an API call's endpoint"""

    @abstractmethod
    async def call_api(self, api_call: ApiCall) -> ApiCallResponse:
        """
        Call the API for a request.

        Implementations do not raise for API failures; they return a response
        carrying an error code instead.
        """
        pass
