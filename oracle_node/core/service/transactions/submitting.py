"""
Transaction submission.

Wallets submit in parallel. Within a wallet, transactions are sent one at a
time with consecutive nonces starting at the wallet's transaction count: API
calls first, then withdrawals, then wallet designations. The nonce only
advances after a successful broadcast. No confirmation is awaited.

A send that times out may still have reached the node. The nonce is not
advanced in that case, so the next transaction of the wallet reuses it and is
rejected. The wallet recovers on the next cycle, when its transaction count is
read again.
"""

import asyncio
from typing import List, Optional

from eth_utils import to_bytes

from oracle_node.core.logger.logger import get_logger
from oracle_node.core.service.chain.client import ChainClient
from oracle_node.core.service.chain.contracts import AIRNODE_ABI
from oracle_node.core.service.provider.models import (
    ProviderState,
    SubmissionReceipt,
    SubmissionSummary,
    WalletData,
)
from oracle_node.core.service.requests.models import (
    ApiCall,
    RequestStatus,
    WalletDesignation,
    Withdrawal,
)
from oracle_node.core.service.transactions.transaction_counts import has_actionable_requests
from oracle_node.core.service.wallet.derivation import ADMIN_WALLET_INDEX, derive_signing_account
from oracle_node.core.utils.promise_utils import go_timeout
from oracle_node.infra.config.settings import Settings

logger = get_logger(__name__)


class RequestType:
    API_CALL = "ApiCall"
    WITHDRAWAL = "Withdrawal"
    WALLET_DESIGNATION = "WalletDesignation"


def _bytes32(value: str) -> bytes:
    return to_bytes(hexstr=value).rjust(32, b"\x00")


def _bytes4(value: str) -> bytes:
    return to_bytes(hexstr=value).rjust(4, b"\x00")


async def submit_api_call(
    client: ChainClient,
    state: ProviderState,
    wallet: WalletData,
    api_call: ApiCall,
    nonce: int,
    settings: Settings
) -> Optional[str]:
    signer = derive_signing_account(state.master_mnemonic, wallet.index)

    if api_call.status == RequestStatus.PENDING:
        if api_call.response_value is None:
            return None
        logger.info("Submitting API call fulfillment", extra={"request_id": api_call.id, "nonce": nonce})
        return await client.send_transaction(
            state.chain.airnode_address,
            AIRNODE_ABI,
            "fulfill",
            _bytes32(api_call.id),
            _bytes32(api_call.response_value),
            api_call.fulfill_address,
            _bytes4(api_call.fulfill_function_id),
            signer=signer,
            gas_limit=settings.FULFILL_GAS_LIMIT,
            gas_price=state.gas_price,
            nonce=nonce,
        )

    if api_call.status == RequestStatus.ERRORED:
        if not api_call.error_address or not api_call.error_function_id:
            logger.warning("Errored request has no error destination", extra={"request_id": api_call.id})
            return None
        logger.info(
            "Submitting API call error",
            extra={"request_id": api_call.id, "error_code": int(api_call.error_code), "nonce": nonce}
        )
        return await client.send_transaction(
            state.chain.airnode_address,
            AIRNODE_ABI,
            "error",
            _bytes32(api_call.id),
            int(api_call.error_code),
            api_call.error_address,
            _bytes4(api_call.error_function_id),
            signer=signer,
            gas_limit=settings.FULFILL_GAS_LIMIT,
            gas_price=state.gas_price,
            nonce=nonce,
        )

    return None


async def submit_withdrawal(
    client: ChainClient,
    state: ProviderState,
    wallet: WalletData,
    withdrawal: Withdrawal,
    nonce: int,
    settings: Settings
) -> Optional[str]:
    if not withdrawal.pending:
        return None

    # Some value has to be sent for the estimate to match the real call
    estimated_gas = await client.estimate_gas(
        state.chain.airnode_address,
        AIRNODE_ABI,
        "fulfillWithdrawal",
        _bytes32(withdrawal.id),
        from_address=wallet.address,
        value=1,
    )
    balance = await client.get_balance(wallet.address)
    funds_to_send = balance - estimated_gas * state.gas_price

    if funds_to_send < 0:
        logger.warning(
            "Wallet balance does not cover the withdrawal transaction cost",
            extra={"request_id": withdrawal.id, "balance": balance, "estimated_gas": estimated_gas}
        )
        return None

    logger.info(
        "Submitting withdrawal fulfillment",
        extra={"request_id": withdrawal.id, "funds_to_send": funds_to_send, "nonce": nonce}
    )
    return await client.send_transaction(
        state.chain.airnode_address,
        AIRNODE_ABI,
        "fulfillWithdrawal",
        _bytes32(withdrawal.id),
        signer=derive_signing_account(state.master_mnemonic, wallet.index),
        gas_limit=estimated_gas,
        gas_price=state.gas_price,
        nonce=nonce,
        value=funds_to_send,
    )


async def submit_wallet_designation(
    client: ChainClient,
    state: ProviderState,
    wallet: WalletData,
    designation: WalletDesignation,
    nonce: int,
    settings: Settings
) -> Optional[str]:
    if not designation.pending or wallet.index != ADMIN_WALLET_INDEX:
        return None

    logger.info(
        "Submitting wallet designation fulfillment",
        extra={"request_id": designation.id, "designated_wallet_index": designation.designated_wallet_index}
    )
    return await client.send_transaction(
        state.chain.airnode_address,
        AIRNODE_ABI,
        "fulfillWalletDesignation",
        _bytes32(designation.id),
        designation.designated_wallet_index,
        signer=derive_signing_account(state.master_mnemonic, ADMIN_WALLET_INDEX),
        gas_limit=settings.WALLET_DESIGNATION_GAS_LIMIT,
        gas_price=state.gas_price,
        nonce=nonce,
    )


SUBMITTERS = (
    ("api_calls", RequestType.API_CALL, submit_api_call),
    ("withdrawals", RequestType.WITHDRAWAL, submit_withdrawal),
    ("wallet_designations", RequestType.WALLET_DESIGNATION, submit_wallet_designation),
)


async def submit_wallet(
    client: ChainClient,
    state: ProviderState,
    wallet: WalletData,
    settings: Settings
) -> List[SubmissionReceipt]:
    """Submit a wallet's transactions sequentially with explicit nonces"""
    nonce = wallet.transaction_count
    receipts: List[SubmissionReceipt] = []

    for queue, request_type, submitter in SUBMITTERS:
        for request in getattr(wallet.requests, queue):
            result = await go_timeout(
                settings.SUBMISSION_TIMEOUT_SECONDS,
                submitter(client, state, wallet, request, nonce, settings)
            )
            if not result.ok:
                logger.error(
                    f"Failed to submit transaction for {request_type} request",
                    extra={
                        **state.log_context,
                        "request_id": request.id,
                        "wallet_index": wallet.index,
                        "nonce": nonce,
                        "error": repr(result.error),
                    }
                )
                continue
            if result.value is None:
                continue

            logger.info(
                f"Submitted transaction for {request_type} request",
                extra={**state.log_context, "request_id": request.id, "transaction_hash": result.value}
            )
            receipts.append(SubmissionReceipt(
                request_id=request.id,
                request_type=request_type,
                wallet_index=wallet.index,
                nonce=nonce,
                transaction_hash=result.value,
            ))
            nonce += 1

    return receipts


async def submit(client: ChainClient, state: ProviderState, settings: Settings) -> SubmissionSummary:
    if state.gas_price is None:
        logger.error("No gas price available, skipping transaction submission", extra=state.log_context)
        return SubmissionSummary(skipped_wallets=sorted(state.wallet_data_by_index))

    ready: List[WalletData] = []
    skipped: List[int] = []
    for index, wallet in sorted(state.wallet_data_by_index.items()):
        if not has_actionable_requests(wallet):
            continue
        if wallet.transaction_count is None:
            skipped.append(index)
            logger.warning(
                "No transaction count for wallet, skipping its requests",
                extra={**state.log_context, "wallet_index": index}
            )
            continue
        ready.append(wallet)

    results = await asyncio.gather(*[submit_wallet(client, state, wallet, settings) for wallet in ready])
    receipts = [receipt for wallet_receipts in results for receipt in wallet_receipts]
    return SubmissionSummary(receipts=receipts, skipped_wallets=skipped)
