"""
Contract surface used by the node: the Airnode contract (requests, fulfillments)
and the Convenience contract (batched reads).
"""

from typing import Any, Dict, List

from eth_utils import event_abi_to_log_topic, to_hex


def _input(name: str, type_: str, indexed: bool = False) -> Dict[str, Any]:
    return {"name": name, "type": type_, "indexed": indexed}


def _event(name: str, *inputs: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "event",
        "name": name,
        "anonymous": False,
        "inputs": [_input("providerId", "bytes32", indexed=True), *inputs],
    }


def _function(name: str, inputs: List[tuple], outputs: List[tuple], mutability: str) -> Dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "stateMutability": mutability,
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "outputs": [{"name": n, "type": t} for n, t in outputs],
    }


class AirnodeEvents:
    """Event names emitted by the Airnode contract"""

    # API calls
    API_CALL_REQUEST = "RequestMade"
    API_CALL_SHORT_REQUEST = "ShortRequestMade"
    API_CALL_FULL_REQUEST = "FullRequestMade"
    API_CALL_FULFILLED_SUCCESSFUL = "FulfillmentSuccessful"
    API_CALL_FULFILLED_BYTES_SUCCESSFUL = "FulfillmentBytesSuccessful"
    API_CALL_FULFILLED_ERRORED = "FulfillmentErrored"
    API_CALL_FULFILLED_FAILED = "FulfillmentFailed"

    # Withdrawals
    WITHDRAWAL_REQUEST = "WithdrawalRequested"
    WITHDRAWAL_FULFILLED = "WithdrawalFulfilled"

    # Wallet designations
    WALLET_DESIGNATION_REQUEST = "WalletDesignationRequested"
    WALLET_DESIGNATION_FULFILLED = "WalletDesignationFulfilled"

    API_CALL_REQUESTS = (API_CALL_REQUEST, API_CALL_SHORT_REQUEST, API_CALL_FULL_REQUEST)
    API_CALL_FULFILLMENTS = (
        API_CALL_FULFILLED_SUCCESSFUL,
        API_CALL_FULFILLED_BYTES_SUCCESSFUL,
        API_CALL_FULFILLED_ERRORED,
        API_CALL_FULFILLED_FAILED,
    )


AIRNODE_ABI: List[Dict[str, Any]] = [
    _event(
        AirnodeEvents.API_CALL_REQUEST,
        _input("requestId", "bytes32"),
        _input("requester", "address"),
        _input("templateId", "bytes32"),
        _input("fulfillAddress", "address"),
        _input("fulfillFunctionId", "bytes4"),
        _input("errorAddress", "address"),
        _input("errorFunctionId", "bytes4"),
        _input("parameters", "bytes"),
    ),
    _event(
        AirnodeEvents.API_CALL_SHORT_REQUEST,
        _input("requestId", "bytes32"),
        _input("requester", "address"),
        _input("templateId", "bytes32"),
        _input("parameters", "bytes"),
    ),
    _event(
        AirnodeEvents.API_CALL_FULL_REQUEST,
        _input("requestId", "bytes32"),
        _input("requester", "address"),
        _input("endpointId", "bytes32"),
        _input("fulfillAddress", "address"),
        _input("fulfillFunctionId", "bytes4"),
        _input("errorAddress", "address"),
        _input("errorFunctionId", "bytes4"),
        _input("parameters", "bytes"),
    ),
    _event(
        AirnodeEvents.API_CALL_FULFILLED_SUCCESSFUL,
        _input("requestId", "bytes32"),
        _input("statusCode", "uint256"),
        _input("data", "bytes32"),
    ),
    _event(
        AirnodeEvents.API_CALL_FULFILLED_BYTES_SUCCESSFUL,
        _input("requestId", "bytes32"),
        _input("statusCode", "uint256"),
        _input("data", "bytes"),
    ),
    _event(
        AirnodeEvents.API_CALL_FULFILLED_ERRORED,
        _input("requestId", "bytes32"),
        _input("statusCode", "uint256"),
    ),
    _event(
        AirnodeEvents.API_CALL_FULFILLED_FAILED,
        _input("requestId", "bytes32"),
    ),
    _event(
        AirnodeEvents.WITHDRAWAL_REQUEST,
        _input("requesterId", "bytes32"),
        _input("withdrawalRequestId", "bytes32"),
        _input("destination", "address"),
    ),
    _event(
        AirnodeEvents.WITHDRAWAL_FULFILLED,
        _input("requesterId", "bytes32"),
        _input("withdrawalRequestId", "bytes32"),
        _input("destination", "address"),
        _input("amount", "uint256"),
    ),
    _event(
        AirnodeEvents.WALLET_DESIGNATION_REQUEST,
        _input("requesterId", "bytes32"),
        _input("walletDesignationRequestId", "bytes32"),
        _input("walletInd", "uint256"),
        _input("depositAmount", "uint256"),
    ),
    _event(
        AirnodeEvents.WALLET_DESIGNATION_FULFILLED,
        _input("requesterId", "bytes32"),
        _input("walletDesignationRequestId", "bytes32"),
        _input("walletInd", "uint256"),
    ),
    _function(
        "fulfill",
        [("requestId", "bytes32"), ("data", "bytes32"), ("fulfillAddress", "address"), ("fulfillFunctionId", "bytes4")],
        [("callSuccess", "bool"), ("callData", "bytes")],
        "nonpayable",
    ),
    _function(
        "error",
        [("requestId", "bytes32"), ("errorCode", "uint256"), ("errorAddress", "address"), ("errorFunctionId", "bytes4")],
        [("callSuccess", "bool"), ("callData", "bytes")],
        "nonpayable",
    ),
    _function(
        "fulfillWalletDesignation",
        [("walletDesignationRequestId", "bytes32"), ("walletInd", "uint256")],
        [],
        "nonpayable",
    ),
    _function(
        "fulfillWithdrawal",
        [("withdrawalRequestId", "bytes32")],
        [],
        "payable",
    ),
]


CONVENIENCE_ABI: List[Dict[str, Any]] = [
    _function(
        "getTemplates",
        [("templateIds", "bytes32[]")],
        [
            ("providerIds", "bytes32[]"),
            ("endpointIds", "bytes32[]"),
            ("fulfillAddresses", "address[]"),
            ("errorAddresses", "address[]"),
            ("fulfillFunctionIds", "bytes4[]"),
            ("errorFunctionIds", "bytes4[]"),
            ("parameters", "bytes[]"),
        ],
        "view",
    ),
    _function(
        "checkAuthorizationStatuses",
        [("endpointIds", "bytes32[]"), ("clientAddresses", "address[]")],
        [("statuses", "bool[]")],
        "view",
    ),
    _function(
        "getDataWithClientAddresses",
        [("providerId", "bytes32"), ("clientAddresses", "address[]")],
        [
            ("requesterIds", "bytes32[]"),
            ("walletInds", "uint256[]"),
            ("walletAddresses", "address[]"),
            ("walletBalances", "uint256[]"),
            ("minBalances", "uint256[]"),
        ],
        "view",
    ),
]


def _events_by_topic(abi: List[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    return {
        to_hex(event_abi_to_log_topic(entry)): entry
        for entry in abi
        if entry["type"] == "event"
    }


AIRNODE_EVENTS_BY_TOPIC = _events_by_topic(AIRNODE_ABI)
AIRNODE_TOPICS_BY_NAME = {entry["name"]: topic for topic, entry in AIRNODE_EVENTS_BY_TOPIC.items()}
