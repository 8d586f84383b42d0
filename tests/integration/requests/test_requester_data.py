"""Tests for requester data fetching and application."""

import pytest
from eth_utils import to_checksum_address

from oracle_node.core.service.requests import requester_data
from oracle_node.core.service.requests.models import (
    GroupedRequests,
    RequestErrorCode,
    RequestStatus,
    RequesterData,
)

from conftest import REQUESTER

CONVENIENCE = "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"


def _address(i: int) -> str:
    return to_checksum_address("0x" + f"{i + 1:040x}")


def _contract_response(addresses):
    n = len(addresses)
    return (
        [bytes([i + 1]) * 32 for i in range(n)],
        [i + 1 for i in range(n)],
        [_address(100 + i) for i in range(n)],
        [5_000] * n,
        [1_000] * n,
    )


@pytest.mark.asyncio
class TestRequesterDataFetching:
    async def test_batches_of_ten(self, mock_client, settings, make_api_call):
        api_calls = [
            make_api_call("0x" + f"{i:064x}", requester_address=_address(i)) for i in range(19)
        ]
        mock_client.call.side_effect = lambda address, abi, method, provider_id, addresses: (
            _contract_response(addresses)
        )

        data = await requester_data.fetch(
            mock_client, CONVENIENCE, settings.PROVIDER_ID, GroupedRequests(api_calls=api_calls), settings
        )

        assert mock_client.call.call_count == 2
        batch_sizes = sorted(len(call.args[4]) for call in mock_client.call.call_args_list)
        assert batch_sizes == [9, 10]
        assert len(data) == 19

    async def test_deduplicates_requesters(self, mock_client, settings, make_api_call, make_withdrawal):
        requests = GroupedRequests(
            api_calls=[make_api_call("0x" + "01" * 32), make_api_call("0x" + "05" * 32)],
            withdrawals=[make_withdrawal()],
        )
        mock_client.call.return_value = _contract_response([REQUESTER])

        data = await requester_data.fetch(mock_client, CONVENIENCE, settings.PROVIDER_ID, requests, settings)

        assert mock_client.call.call_count == 1
        assert mock_client.call.call_args.args[4] == [REQUESTER]
        assert data[REQUESTER].wallet_index == 1
        assert data[REQUESTER].requester_id == "0x" + "01" * 32

    async def test_failed_batch_is_retried_then_dropped(self, mock_client, settings, make_api_call):
        mock_client.call.side_effect = ConnectionError("rpc down")

        data = await requester_data.fetch(
            mock_client, CONVENIENCE, settings.PROVIDER_ID, GroupedRequests(api_calls=[make_api_call()]), settings
        )

        assert data == {}
        assert mock_client.call.call_count == 2

    async def test_short_response_is_dropped(self, mock_client, settings, make_api_call):
        mock_client.call.return_value = ([], [], [], [], [])

        data = await requester_data.fetch(
            mock_client, CONVENIENCE, settings.PROVIDER_ID, GroupedRequests(api_calls=[make_api_call()]), settings
        )

        assert data == {}

    async def test_malformed_batch_does_not_affect_other_batches(self, mock_client, settings, make_api_call):
        api_calls = [
            make_api_call("0x" + f"{i:064x}", requester_address=_address(i)) for i in range(12)
        ]

        def respond(address, abi, method, provider_id, addresses):
            response = _contract_response(addresses)
            if len(addresses) == 2:
                return response[:2] + (["not an address"] * 2,) + response[3:]
            return response

        mock_client.call.side_effect = respond

        data = await requester_data.fetch(
            mock_client, CONVENIENCE, settings.PROVIDER_ID, GroupedRequests(api_calls=api_calls), settings
        )

        assert len(data) == 10
        assert _address(11) not in data


class TestRequesterDataApplication:
    def test_missing_data_blocks_request(self, make_api_call):
        requests = GroupedRequests(api_calls=[make_api_call(wallet_index=None)])

        result = requester_data.apply(requests, {})

        assert result.api_calls[0].status == RequestStatus.BLOCKED
        assert result.api_calls[0].error_code == RequestErrorCode.REQUESTER_DATA_NOT_FOUND

    def test_data_is_applied(self, make_api_call, make_withdrawal):
        data = {
            REQUESTER: RequesterData(
                requester_id="0x" + "aa" * 32,
                wallet_index=4,
                wallet_address=_address(4),
                wallet_balance=123,
                minimum_balance=100,
            )
        }
        requests = GroupedRequests(api_calls=[make_api_call(wallet_index=None)], withdrawals=[make_withdrawal()])

        result = requester_data.apply(requests, data)

        assert result.api_calls[0].wallet_index == 4
        assert result.api_calls[0].wallet_balance == 123
        assert result.withdrawals[0].wallet_minimum_balance == 100
        assert result.api_calls[0].status == RequestStatus.PENDING
