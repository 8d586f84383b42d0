"""Tests for fetching and classifying Airnode event logs."""

import pytest
from eth_abi import encode

from oracle_node.core.exceptions.base import EventLogsUnavailableError
from oracle_node.core.service.chain.contracts import AIRNODE_TOPICS_BY_NAME, AirnodeEvents
from oracle_node.core.service.requests import api_calls, event_logs, wallet_designations, withdrawals
from oracle_node.core.service.requests.models import ApiCallType, RequestErrorCode, RequestStatus
from oracle_node.core.service.requests.parameters import encode_parameters

from conftest import ENDPOINT_ID, FULFILL_ADDRESS, ERROR_ADDRESS, PROVIDER_ID, REQUESTER, TEMPLATE_ID

REQUEST_ID = "0x" + "01" * 32
DESIGNATION_ID = "0x" + "03" * 32
WITHDRAWAL_ID = "0x" + "02" * 32
REQUESTER_ID = "0x" + "de" * 32


def _b(hex_value: str) -> bytes:
    return bytes.fromhex(hex_value[2:])


def raw_log(name, types, values, block_number=990):
    return {
        "topics": [_b(AIRNODE_TOPICS_BY_NAME[name]), _b(PROVIDER_ID)],
        "data": encode(types, values),
        "blockNumber": block_number,
        "transactionHash": b"\xcc" * 32,
    }


def request_made(request_id=REQUEST_ID, parameters=b""):
    return raw_log(
        AirnodeEvents.API_CALL_REQUEST,
        ["bytes32", "address", "bytes32", "address", "bytes4", "address", "bytes4", "bytes"],
        [_b(request_id), REQUESTER, _b(TEMPLATE_ID), FULFILL_ADDRESS, b"\x48\xa4\x15\x7c",
         ERROR_ADDRESS, b"\xb3\xde\xd1\xb4", parameters],
    )


def full_request_made(request_id=REQUEST_ID, parameters=b""):
    return raw_log(
        AirnodeEvents.API_CALL_FULL_REQUEST,
        ["bytes32", "address", "bytes32", "address", "bytes4", "address", "bytes4", "bytes"],
        [_b(request_id), REQUESTER, _b(ENDPOINT_ID), FULFILL_ADDRESS, b"\x48\xa4\x15\x7c",
         ERROR_ADDRESS, b"\xb3\xde\xd1\xb4", parameters],
    )


def fulfillment_successful(request_id=REQUEST_ID):
    return raw_log(
        AirnodeEvents.API_CALL_FULFILLED_SUCCESSFUL,
        ["bytes32", "uint256", "bytes32"],
        [_b(request_id), 0, b"\x00" * 32],
    )


def withdrawal_requested(request_id=WITHDRAWAL_ID):
    return raw_log(
        AirnodeEvents.WITHDRAWAL_REQUEST,
        ["bytes32", "bytes32", "address"],
        [_b(REQUESTER_ID), _b(request_id), REQUESTER],
    )


def withdrawal_fulfilled(request_id=WITHDRAWAL_ID):
    return raw_log(
        AirnodeEvents.WITHDRAWAL_FULFILLED,
        ["bytes32", "bytes32", "address", "uint256"],
        [_b(REQUESTER_ID), _b(request_id), REQUESTER, 1_500_000],
    )


def designation_requested(request_id=DESIGNATION_ID, wallet_index=7):
    return raw_log(
        AirnodeEvents.WALLET_DESIGNATION_REQUEST,
        ["bytes32", "bytes32", "uint256", "uint256"],
        [_b(REQUESTER_ID), _b(request_id), wallet_index, 100],
    )


def designation_fulfilled(request_id=DESIGNATION_ID):
    return raw_log(
        AirnodeEvents.WALLET_DESIGNATION_FULFILLED,
        ["bytes32", "bytes32", "uint256"],
        [_b(REQUESTER_ID), _b(request_id), 7],
    )


class TestParseLog:
    def test_parses_request_made(self):
        log = event_logs.parse_log(request_made())

        assert log.name == AirnodeEvents.API_CALL_REQUEST
        assert log.args["providerId"] == PROVIDER_ID
        assert log.args["requestId"] == REQUEST_ID
        assert log.args["requester"] == REQUESTER
        assert log.args["fulfillFunctionId"] == "0x48a4157c"
        assert log.block_number == 990

    def test_unknown_topic_is_none(self):
        log = request_made()
        log["topics"][0] = b"\x99" * 32

        assert event_logs.parse_log(log) is None

    def test_group_by_request_kind(self):
        logs = [
            event_logs.parse_log(l)
            for l in [request_made(), fulfillment_successful(), withdrawal_requested(), designation_requested()]
        ]

        grouped = event_logs.group(logs)

        assert len(grouped.api_calls) == 2
        assert len(grouped.withdrawals) == 1
        assert len(grouped.wallet_designations) == 1


@pytest.mark.asyncio
class TestFetch:
    async def test_fetches_window_filtered_by_provider(self, mock_client):
        mock_client.get_logs.return_value = [request_made(), {"topics": [b"\x99" * 32], "data": b""}]

        logs = await event_logs.fetch(mock_client, "0x5FbDB2315678afecb367f032d93F642f64180aa3", PROVIDER_ID, 1000, 300)

        assert [log.name for log in logs] == [AirnodeEvents.API_CALL_REQUEST]
        kwargs = mock_client.get_logs.call_args.kwargs
        assert kwargs["from_block"] == 700
        assert kwargs["to_block"] == 1000
        assert kwargs["topics"] == [None, PROVIDER_ID]

    async def test_window_does_not_go_below_genesis(self, mock_client):
        await event_logs.fetch(mock_client, "0x5FbDB2315678afecb367f032d93F642f64180aa3", PROVIDER_ID, 100, 300)

        assert mock_client.get_logs.call_args.kwargs["from_block"] == 0

    async def test_fetch_failure_is_fatal(self, mock_client):
        mock_client.get_logs.side_effect = ConnectionError("rpc down")

        with pytest.raises(EventLogsUnavailableError):
            await event_logs.fetch(mock_client, "0x5FbDB2315678afecb367f032d93F642f64180aa3", PROVIDER_ID, 1000, 300)


class TestRequestMapping:
    def test_fulfilled_api_calls_are_dropped(self):
        logs = [event_logs.parse_log(l) for l in [
            request_made(REQUEST_ID),
            request_made("0x" + "05" * 32),
            fulfillment_successful(REQUEST_ID),
        ]]

        result = api_calls.map_requests(logs)

        assert [a.id for a in result] == ["0x" + "05" * 32]
        assert result[0].status == RequestStatus.PENDING
        assert result[0].template_id == TEMPLATE_ID
        assert result[0].request_type == ApiCallType.REGULAR

    def test_full_request_has_endpoint_and_decoded_parameters(self):
        encoded = encode_parameters([("S", "from", "ETH"), ("u", "amount", 5)])
        logs = [event_logs.parse_log(full_request_made(parameters=_b(encoded)))]

        [api_call] = api_calls.map_requests(logs)

        assert api_call.request_type == ApiCallType.FULL
        assert api_call.endpoint_id == ENDPOINT_ID
        assert api_call.template_id is None
        assert api_call.parameters == {"from": "ETH", "amount": "5"}

    def test_invalid_parameters_error_the_request(self):
        logs = [event_logs.parse_log(request_made(parameters=b"\x01\x02\x03"))]

        [api_call] = api_calls.map_requests(logs)

        assert api_call.status == RequestStatus.ERRORED
        assert api_call.error_code == RequestErrorCode.INVALID_REQUEST_PARAMETERS

    def test_withdrawal_requester_is_destination(self):
        logs = [event_logs.parse_log(withdrawal_requested())]

        [withdrawal] = withdrawals.map_requests(logs)

        assert withdrawal.id == WITHDRAWAL_ID
        assert withdrawal.requester_address == REQUESTER
        assert withdrawal.destination_address == REQUESTER

    def test_fulfilled_withdrawals_are_dropped(self):
        logs = [event_logs.parse_log(l) for l in [
            withdrawal_requested(),
            withdrawal_requested("0x" + "06" * 32),
            withdrawal_fulfilled(),
        ]]

        result = withdrawals.map_requests(logs)

        assert [w.id for w in result] == ["0x" + "06" * 32]

    def test_rebroadcast_designations_are_deduplicated(self):
        logs = [event_logs.parse_log(l) for l in [
            designation_requested(),
            designation_requested(),
            designation_requested("0x" + "04" * 32, wallet_index=8),
        ]]

        result = wallet_designations.map_requests(logs)

        assert [d.id for d in result] == [DESIGNATION_ID, "0x" + "04" * 32]
        assert result[1].designated_wallet_index == 8

    def test_fulfilled_designations_are_dropped(self):
        logs = [event_logs.parse_log(l) for l in [designation_requested(), designation_fulfilled()]]

        assert wallet_designations.map_requests(logs) == []
