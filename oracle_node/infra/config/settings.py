from typing import List, Optional
from pydantic import BaseModel
from pydantic_settings import BaseSettings
from functools import lru_cache


class ChainSettings(BaseModel):
    """Connection and contract details for one chain the node serves."""
    name: str
    chain_id: int
    rpc_url: str
    airnode_address: str
    convenience_address: str


class Settings(BaseSettings):
    # App Settings
    APP_NAME: str = "OracleNode"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_FORMAT: str = "json"  # json or plain

    # Provider Settings
    PROVIDER_ID: str = "0x" + "0" * 64
    MASTER_MNEMONIC: Optional[str] = None

    # Chains (JSON list in the environment)
    CHAINS: List[ChainSettings] = []

    # Polling Settings
    POLLING_INTERVAL_SECONDS: int = 60
    BLOCK_HISTORY_LIMIT: int = 300  # blocks scanned back from the current one

    # Remote call Settings
    BATCH_SIZE: int = 10
    RETRY_ATTEMPTS: int = 2
    RETRY_TIMEOUT_SECONDS: float = 4.0
    RETRY_DELAY_SECONDS: float = 0.05
    SUBMISSION_TIMEOUT_SECONDS: float = 4.0

    # Gas Settings
    FULFILL_GAS_LIMIT: int = 500_000
    WALLET_DESIGNATION_GAS_LIMIT: int = 150_000

    # API caller Settings
    API_GATEWAY_URL: Optional[str] = None
    API_GATEWAY_TOKEN: Optional[str] = None
    API_CALL_TIMEOUT_SECONDS: float = 20.0

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def retry_timeouts(self) -> List[float]:
        return [self.RETRY_TIMEOUT_SECONDS] * self.RETRY_ATTEMPTS


@lru_cache()
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
