"""Async client for the chain RPC used by every pipeline stage."""

import asyncio
from typing import Any, Dict, List, Optional, Sequence

from web3 import AsyncWeb3, Web3
from eth_account.signers.local import LocalAccount

from oracle_node.core.logger.logger import get_logger

logger = get_logger(__name__)


class ChainClient:
    """
    Thin wrapper over AsyncWeb3.
    Reads are retried once on failure; transaction sends are never retried.
    """

    READ_ATTEMPTS = 2
    READ_RETRY_DELAY_SECONDS = 0.05

    def __init__(self, rpc_url: str, chain_id: int, web3: Optional[AsyncWeb3] = None):
        self.rpc_url = rpc_url
        self.chain_id = chain_id
        self.web3 = web3 or AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))

    async def _read(self, operation: str, factory) -> Any:
        for attempt in range(self.READ_ATTEMPTS):
            try:
                return await factory()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if attempt + 1 >= self.READ_ATTEMPTS:
                    raise
                logger.debug(
                    f"Retrying chain read {operation}",
                    extra={"chain_id": self.chain_id, "error": str(e)}
                )
                await asyncio.sleep(self.READ_RETRY_DELAY_SECONDS)

    def _contract(self, address: str, abi: List[Dict[str, Any]]):
        return self.web3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    async def get_block_number(self) -> int:
        return await self._read("block_number", lambda: self.web3.eth.block_number)

    async def get_logs(
        self,
        address: str,
        topics: Sequence[Optional[str]],
        from_block: int,
        to_block: int
    ) -> List[Dict[str, Any]]:
        params = {
            "address": Web3.to_checksum_address(address),
            "topics": list(topics),
            "fromBlock": from_block,
            "toBlock": to_block,
        }
        return list(await self._read("get_logs", lambda: self.web3.eth.get_logs(params)))

    async def get_balance(self, address: str) -> int:
        return await self._read(
            "get_balance",
            lambda: self.web3.eth.get_balance(Web3.to_checksum_address(address))
        )

    async def get_transaction_count(self, address: str) -> int:
        return await self._read(
            "get_transaction_count",
            lambda: self.web3.eth.get_transaction_count(Web3.to_checksum_address(address), "latest")
        )

    async def get_gas_price(self) -> int:
        return await self._read("gas_price", lambda: self.web3.eth.gas_price)

    async def call(self, address: str, abi: List[Dict[str, Any]], method: str, *args: Any) -> Any:
        contract = self._contract(address, abi)
        return await self._read(method, lambda: contract.functions[method](*args).call())

    async def estimate_gas(
        self,
        address: str,
        abi: List[Dict[str, Any]],
        method: str,
        *args: Any,
        from_address: str,
        value: int = 0
    ) -> int:
        contract = self._contract(address, abi)
        params = {"from": Web3.to_checksum_address(from_address), "value": value}
        return await self._read(method, lambda: contract.functions[method](*args).estimate_gas(params))

    async def send_transaction(
        self,
        address: str,
        abi: List[Dict[str, Any]],
        method: str,
        *args: Any,
        signer: LocalAccount,
        gas_limit: int,
        gas_price: int,
        nonce: int,
        value: int = 0
    ) -> str:
        """Build, sign and broadcast a contract call. Returns the transaction hash."""
        contract = self._contract(address, abi)
        tx = await contract.functions[method](*args).build_transaction({
            "from": signer.address,
            "chainId": self.chain_id,
            "gas": gas_limit,
            "gasPrice": gas_price,
            "nonce": nonce,
            "value": value,
        })
        signed_tx = signer.sign_transaction(tx)
        tx_hash = await self.web3.eth.send_raw_transaction(signed_tx.raw_transaction)
        return Web3.to_hex(tx_hash)
