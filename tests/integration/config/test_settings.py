import json

from oracle_node.infra.config.settings import Settings


def test_defaults():
    settings = Settings()

    assert settings.BLOCK_HISTORY_LIMIT == 300
    assert settings.BATCH_SIZE == 10
    assert settings.retry_timeouts == [4.0, 4.0]
    assert settings.FULFILL_GAS_LIMIT == 500_000
    assert settings.WALLET_DESIGNATION_GAS_LIMIT == 150_000


def test_chains_from_environment(monkeypatch):
    monkeypatch.setenv("CHAINS", json.dumps([{
        "name": "sepolia",
        "chain_id": 11155111,
        "rpc_url": "https://rpc.sepolia.org",
        "airnode_address": "0x5FbDB2315678afecb367f032d93F642f64180aa3",
        "convenience_address": "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512",
    }]))
    monkeypatch.setenv("RETRY_ATTEMPTS", "3")

    settings = Settings()

    assert settings.CHAINS[0].name == "sepolia"
    assert settings.CHAINS[0].chain_id == 11155111
    assert settings.retry_timeouts == [4.0, 4.0, 4.0]
