import asyncio
from typing import Dict

from oracle_node.core.logger.logger import get_logger
from oracle_node.core.service.api_caller.base import ApiCaller, ApiCallResponse
from oracle_node.core.service.provider.models import ProviderState, WalletData
from oracle_node.core.service.requests.models import ApiCall, RequestErrorCode, RequestStatus
from oracle_node.core.utils.promise_utils import go

logger = get_logger(__name__)


def apply_response(api_call: ApiCall, response: ApiCallResponse) -> ApiCall:
    if response.success:
        return api_call.update(response_value=response.value)

    error_code = response.error_code or RequestErrorCode.RESPONSE_VALUE_NOT_FOUND
    logger.error(
        "API call failed",
        extra={"request_id": api_call.id, "error_code": error_code.name, "reason": response.message}
    )
    return api_call.with_status(RequestStatus.ERRORED, error_code)


async def call_api(api_caller: ApiCaller, api_call: ApiCall) -> ApiCall:
    if not api_call.pending:
        return api_call

    result = await go(api_caller.call_api(api_call))
    if not result.ok:
        logger.error(
            "API caller raised an error",
            extra={"request_id": api_call.id, "error": str(result.error)}
        )
        return api_call.with_status(RequestStatus.ERRORED, RequestErrorCode.API_CALL_FAILED)
    return apply_response(api_call, result.value)


async def call_apis(state: ProviderState, api_caller: ApiCaller) -> ProviderState:
    """Call the API of every pending API call held by a wallet, in parallel"""
    wallets = state.wallet_data_by_index

    pairs = [
        (index, api_call)
        for index, wallet in wallets.items()
        for api_call in wallet.requests.api_calls
    ]
    called = await asyncio.gather(*[call_api(api_caller, api_call) for _, api_call in pairs])

    updated_by_index: Dict[int, list] = {}
    for (index, _), api_call in zip(pairs, called):
        updated_by_index.setdefault(index, []).append(api_call)

    updated_wallets: Dict[int, WalletData] = {}
    for index, wallet in wallets.items():
        requests = wallet.requests.model_copy(update={"api_calls": updated_by_index.get(index, [])})
        updated_wallets[index] = wallet.model_copy(update={"requests": requests})

    return state.model_copy(update={"wallet_data_by_index": updated_wallets})
