"""
Shared test configuration and fixtures.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from oracle_node.core.service.chain.client import ChainClient
from oracle_node.core.service.requests.models import (
    ApiCall,
    LogMetadata,
    WalletDesignation,
    Withdrawal,
)
from oracle_node.infra.config.settings import ChainSettings, Settings

TEST_MNEMONIC = "achieve climb couple wait accident symbol spy blouse reduce foil echo label"
TEST_XPUB = (
    "xpub661MyMwAqRbcGeCE1g3KTUVGZsFDE3jMNinRPGCQGQsAp1nwinB9Pi16ihKPJw7qtaaTFuBHbRPeSc6w3AcMjxiHkAPfyp1hqQRbthv4Ryx"
)
PROVIDER_ID = "0x" + "f1" * 32
ENDPOINT_ID = "0x" + "e1" * 32
TEMPLATE_ID = "0x" + "a1" * 32
REQUESTER = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
FULFILL_ADDRESS = "0x2279B7A0a67DB372996a5FaB50D91eAA73d2eBe6"
ERROR_ADDRESS = "0x8A791620dd6260079BF849Dc5567aDC3F2FdC318"


@pytest.fixture
def settings():
    """Settings with short deadlines for fast tests."""
    return Settings(
        PROVIDER_ID=PROVIDER_ID,
        MASTER_MNEMONIC=TEST_MNEMONIC,
        RETRY_TIMEOUT_SECONDS=0.5,
        RETRY_DELAY_SECONDS=0,
        SUBMISSION_TIMEOUT_SECONDS=0.5,
        CHAINS=[],
    )


@pytest.fixture
def chain():
    return ChainSettings(
        name="testnet",
        chain_id=1337,
        rpc_url="http://127.0.0.1:8545",
        airnode_address="0x5FbDB2315678afecb367f032d93F642f64180aa3",
        convenience_address="0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512",
    )


@pytest.fixture
def mock_client():
    """ChainClient with every remote call mocked."""
    client = MagicMock(spec=ChainClient)
    client.chain_id = 1337
    client.get_block_number = AsyncMock(return_value=1000)
    client.get_logs = AsyncMock(return_value=[])
    client.get_balance = AsyncMock(return_value=0)
    client.get_transaction_count = AsyncMock(return_value=0)
    client.get_gas_price = AsyncMock(return_value=1000)
    client.call = AsyncMock()
    client.estimate_gas = AsyncMock(return_value=1000)
    client.send_transaction = AsyncMock(return_value="0x" + "ab" * 32)
    return client


def _metadata():
    return LogMetadata(block_number=990, transaction_hash="0x" + "cc" * 32)


@pytest.fixture
def make_api_call():
    def factory(request_id: str = "0x" + "01" * 32, **overrides) -> ApiCall:
        fields = dict(
            id=request_id,
            provider_id=PROVIDER_ID,
            requester_address=REQUESTER,
            endpoint_id=ENDPOINT_ID,
            fulfill_address=FULFILL_ADDRESS,
            fulfill_function_id="0x48a4157c",
            error_address=ERROR_ADDRESS,
            error_function_id="0xb3ded1b4",
            requester_id="0x" + "de" * 32,
            wallet_index=1,
            wallet_balance=10_000,
            wallet_minimum_balance=5_000,
            metadata=_metadata(),
        )
        fields.update(overrides)
        return ApiCall(**fields)
    return factory


@pytest.fixture
def make_withdrawal():
    def factory(request_id: str = "0x" + "02" * 32, **overrides) -> Withdrawal:
        fields = dict(
            id=request_id,
            provider_id=PROVIDER_ID,
            requester_id="0x" + "de" * 32,
            requester_address=REQUESTER,
            destination_address=REQUESTER,
            wallet_index=1,
            wallet_balance=10_000,
            wallet_minimum_balance=5_000,
            metadata=_metadata(),
        )
        fields.update(overrides)
        return Withdrawal(**fields)
    return factory


@pytest.fixture
def make_wallet_designation():
    def factory(request_id: str = "0x" + "03" * 32, **overrides) -> WalletDesignation:
        fields = dict(
            id=request_id,
            provider_id=PROVIDER_ID,
            requester_id="0x" + "de" * 32,
            designated_wallet_index=7,
            deposit_amount=100,
            metadata=_metadata(),
        )
        fields.update(overrides)
        return WalletDesignation(**fields)
    return factory
