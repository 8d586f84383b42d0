"""Tests for authorization fetching."""

import pytest
from eth_utils import to_checksum_address

from oracle_node.core.service.authorization import authorization_fetching
from oracle_node.core.service.requests.models import RequestErrorCode, RequestStatus

from conftest import ENDPOINT_ID, REQUESTER

CONVENIENCE = "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"
OTHER_REQUESTER = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"


@pytest.mark.asyncio
class TestAuthorizationFetching:
    async def test_duplicate_pairs_are_fetched_once(self, mock_client, settings, make_api_call):
        api_calls = [
            make_api_call("0x" + "01" * 32),
            make_api_call("0x" + "05" * 32),
            make_api_call("0x" + "06" * 32, requester_address=OTHER_REQUESTER),
        ]
        mock_client.call.return_value = [True, False]

        authorizations = await authorization_fetching.fetch(mock_client, CONVENIENCE, api_calls, settings)

        assert mock_client.call.call_count == 1
        _, _, method, endpoint_ids, requesters = mock_client.call.call_args.args
        assert method == "checkAuthorizationStatuses"
        assert endpoint_ids == [ENDPOINT_ID, ENDPOINT_ID]
        assert requesters == [REQUESTER, OTHER_REQUESTER]
        assert authorizations == {ENDPOINT_ID: {REQUESTER: True, OTHER_REQUESTER: False}}

    async def test_pairs_are_batched(self, mock_client, settings, make_api_call):
        api_calls = [
            make_api_call(f"0x{i:064x}", requester_address=to_checksum_address(f"0x{i + 1:040x}"))
            for i in range(25)
        ]
        mock_client.call.side_effect = lambda address, abi, method, endpoint_ids, requesters: [True] * len(requesters)

        authorizations = await authorization_fetching.fetch(mock_client, CONVENIENCE, api_calls, settings)

        assert mock_client.call.call_count == 3
        assert len(authorizations[ENDPOINT_ID]) == 25

    async def test_failed_batch_leaves_pairs_absent(self, mock_client, settings, make_api_call):
        mock_client.call.side_effect = ConnectionError("rpc down")

        authorizations = await authorization_fetching.fetch(mock_client, CONVENIENCE, [make_api_call()], settings)

        assert authorizations == {}
        assert mock_client.call.call_count == 2

    async def test_only_pending_api_calls_are_checked(self, mock_client, settings, make_api_call):
        blocked = make_api_call().with_status(RequestStatus.BLOCKED, RequestErrorCode.TEMPLATE_NOT_FOUND)

        authorizations = await authorization_fetching.fetch(mock_client, CONVENIENCE, [blocked], settings)

        assert authorizations == {}
        mock_client.call.assert_not_called()
