"""
Deterministic wallet derivation for provider wallets.

Wallets follow BIP32 path m/0/0/{index} from the master key of the provider
mnemonic. Addresses are derived from the master extended public key alone,
private keys only when a transaction has to be signed.
"""

import hashlib
import hmac
from functools import lru_cache
from typing import Tuple

import base58
from ecdsa import SECP256k1, SigningKey, VerifyingKey
from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import keccak, to_checksum_address
from mnemonic import Mnemonic

ADMIN_WALLET_INDEX = 0

XPUB_VERSION = bytes.fromhex("0488b21e")
HARDENED_OFFSET = 0x80000000
CURVE_ORDER = SECP256k1.order

Account.enable_unaudited_hdwallet_features()


class ExtendedKeyError(ValueError):
    pass


def wallet_path(index: int) -> str:
    return f"m/0/0/{index}"


def _master_key(mnemonic: str) -> Tuple[bytes, bytes]:
    seed = Mnemonic("english").to_seed(mnemonic)
    digest = hmac.new(b"Bitcoin seed", seed, hashlib.sha512).digest()
    return digest[:32], digest[32:]


def _serialize_xpub(depth: int, fingerprint: bytes, child_number: int, chain_code: bytes, public_key: bytes) -> str:
    payload = (
        XPUB_VERSION
        + bytes([depth])
        + fingerprint
        + child_number.to_bytes(4, "big")
        + chain_code
        + public_key
    )
    return base58.b58encode_check(payload).decode()


def get_extended_public_key(mnemonic: str) -> str:
    """Master extended public key (depth 0) of a BIP39 mnemonic"""
    private_key, chain_code = _master_key(mnemonic)
    signing_key = SigningKey.from_string(private_key, curve=SECP256k1)
    public_key = signing_key.get_verifying_key().to_string("compressed")
    return _serialize_xpub(0, b"\x00" * 4, 0, chain_code, public_key)


def _parse_xpub(xpub: str) -> Tuple[bytes, bytes]:
    try:
        payload = base58.b58decode_check(xpub)
    except ValueError as e:
        raise ExtendedKeyError("Invalid extended public key checksum") from e
    if len(payload) != 78 or payload[:4] != XPUB_VERSION:
        raise ExtendedKeyError("Not an extended public key")
    return payload[13:45], payload[45:78]


def _derive_public_child(chain_code: bytes, public_key: bytes, index: int) -> Tuple[bytes, bytes]:
    if index >= HARDENED_OFFSET:
        raise ExtendedKeyError("Hardened children cannot be derived from a public key")

    digest = hmac.new(chain_code, public_key + index.to_bytes(4, "big"), hashlib.sha512).digest()
    tweak = int.from_bytes(digest[:32], "big")
    if tweak >= CURVE_ORDER:
        raise ExtendedKeyError(f"Invalid child key at index {index}")

    parent_point = VerifyingKey.from_string(public_key, curve=SECP256k1).pubkey.point
    child_point = SECP256k1.generator * tweak + parent_point
    child_key = VerifyingKey.from_public_point(child_point, curve=SECP256k1)
    return digest[32:], child_key.to_string("compressed")


def _address_from_public_key(public_key: bytes) -> str:
    raw = VerifyingKey.from_string(public_key, curve=SECP256k1).to_string("raw")
    return to_checksum_address(keccak(raw)[-20:])


@lru_cache(maxsize=1024)
def derive_wallet_address(xpub: str, index: int) -> str:
    """Checksummed address of wallet `index`, derived from the master xpub only"""
    if index < 0:
        raise ExtendedKeyError("Wallet index cannot be negative")
    chain_code, public_key = _parse_xpub(xpub)
    for child in (0, 0, index):
        chain_code, public_key = _derive_public_child(chain_code, public_key, child)
    return _address_from_public_key(public_key)


@lru_cache(maxsize=256)
def derive_signing_account(mnemonic: str, index: int) -> LocalAccount:
    """Account holding the private key of wallet `index`"""
    return Account.from_mnemonic(mnemonic, account_path=wallet_path(index))
