"""Per-cycle state of a provider on one chain."""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from oracle_node.core.service.requests.models import GroupedRequests
from oracle_node.infra.config.settings import ChainSettings


class WalletData(BaseModel):
    """A provider wallet and the requests it will submit this cycle."""
    index: int
    address: str
    transaction_count: Optional[int] = None
    requests: GroupedRequests = Field(default_factory=GroupedRequests)

    class Config:
        frozen = True


class ProviderState(BaseModel):
    chain: ChainSettings
    provider_id: str
    master_mnemonic: str = Field(repr=False)
    xpub: str
    current_block: Optional[int] = None
    gas_price: Optional[int] = None
    requests: GroupedRequests = Field(default_factory=GroupedRequests)
    wallet_data_by_index: Dict[int, WalletData] = Field(default_factory=dict)

    class Config:
        frozen = True

    @property
    def log_context(self) -> Dict[str, object]:
        return {"chain": self.chain.name, "chain_id": self.chain.chain_id}


class SubmissionReceipt(BaseModel):
    """A transaction the node broadcast"""
    request_id: str
    request_type: str
    wallet_index: int
    nonce: int
    transaction_hash: str


class SubmissionSummary(BaseModel):
    receipts: List[SubmissionReceipt] = Field(default_factory=list)
    skipped_wallets: List[int] = Field(default_factory=list)
