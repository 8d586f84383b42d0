"""
API caller forwarding requests to an external adapter gateway over HTTP.
"""

import re
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from oracle_node.core.logger.logger import get_logger
from oracle_node.core.service.api_caller.base import ApiCaller, ApiCallResponse
from oracle_node.core.service.requests.models import ApiCall, RequestErrorCode

logger = get_logger(__name__)

BYTES32_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")


class HttpApiCaller(ApiCaller):
    """
    Posts the request parameters to `{gateway}/endpoints/{endpoint_id}` and
    expects a JSON body with an encoded `value`.
    """

    def __init__(self, gateway_url: str, timeout: float = 20.0, token: Optional[str] = None):
        self.gateway_url = gateway_url.rstrip("/")
        self.timeout = timeout
        self.token = token

    def _build_url(self, api_call: ApiCall) -> str:
        return f"{self.gateway_url}/endpoints/{api_call.endpoint_id}"

    def _build_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _build_request_body(self, api_call: ApiCall) -> Dict[str, Any]:
        return {
            "requestId": api_call.id,
            "requesterAddress": api_call.requester_address,
            "parameters": api_call.parameters,
        }

    async def call_api(self, api_call: ApiCall) -> ApiCallResponse:
        url = self._build_url(api_call)

        logger.info(
            "Calling API for request",
            extra={"request_id": api_call.id, "endpoint_id": api_call.endpoint_id, "url": url}
        )

        async with httpx.AsyncClient() as client:
            try:
                start_time = datetime.utcnow()

                response = await client.post(
                    url,
                    json=self._build_request_body(api_call),
                    headers=self._build_headers(),
                    timeout=self.timeout
                )

                duration = (datetime.utcnow() - start_time).total_seconds()
                logger.info(
                    "API response received",
                    extra={
                        "request_id": api_call.id,
                        "status_code": response.status_code,
                        "duration_seconds": duration
                    }
                )

            except httpx.TimeoutException:
                logger.error(
                    "API call timeout",
                    extra={"request_id": api_call.id, "timeout_seconds": self.timeout}
                )
                return ApiCallResponse(
                    error_code=RequestErrorCode.API_CALL_FAILED,
                    message=f"API call timed out after {self.timeout} seconds"
                )

            except httpx.RequestError as e:
                logger.error(
                    "API call connection error",
                    extra={"request_id": api_call.id, "error": str(e)}
                )
                return ApiCallResponse(error_code=RequestErrorCode.API_CALL_FAILED, message=str(e))

        if response.status_code != 200:
            logger.error(
                "API returned error status",
                extra={
                    "request_id": api_call.id,
                    "status_code": response.status_code,
                    "response_text": response.text[:500]
                }
            )
            return ApiCallResponse(
                error_code=RequestErrorCode.API_CALL_FAILED,
                message=f"API error status: {response.status_code}"
            )

        try:
            body = response.json()
        except ValueError:
            return ApiCallResponse(
                error_code=RequestErrorCode.RESPONSE_VALUE_NOT_FOUND,
                message="API response is not JSON"
            )

        value = body.get("value") if isinstance(body, dict) else None
        if value is None:
            return ApiCallResponse(
                error_code=RequestErrorCode.RESPONSE_VALUE_NOT_FOUND,
                message="API response has no value"
            )
        if not isinstance(value, str) or not BYTES32_PATTERN.match(value):
            return ApiCallResponse(
                error_code=RequestErrorCode.INVALID_RESPONSE_PARAMETERS,
                message="API response value is not an encoded bytes32"
            )

        return ApiCallResponse(value=value)
