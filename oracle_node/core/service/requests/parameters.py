"""
Request parameter codec.

Parameters are ABI encoded as a bytes32 header followed by (name, value) pairs.
The header holds the encoding version "1" and one type code per parameter.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from eth_abi import decode, encode
from eth_utils import to_checksum_address, to_hex

from oracle_node.core.logger.logger import get_logger

logger = get_logger(__name__)

ENCODING_VERSION = "1"

PARAMETER_TYPES = {
    "a": "address",
    "b": "bytes",
    "B": "bytes32",
    "i": "int256",
    "u": "uint256",
    "s": "string",
    "S": "bytes32",  # short string
}


class ParameterDecodingError(ValueError):
    pass


def _string_to_bytes32(value: str) -> bytes:
    raw = value.encode("utf-8")
    if len(raw) > 32:
        raise ValueError(f"String does not fit in bytes32: {value}")
    return raw.ljust(32, b"\x00")


def _bytes32_to_string(value: bytes) -> str:
    return value.rstrip(b"\x00").decode("utf-8")


def _to_bytes(data: str) -> bytes:
    return bytes.fromhex(data[2:] if data.startswith("0x") else data)


def _decode_value(code: str, value: Any) -> Any:
    if code == "a":
        return to_checksum_address(value)
    if code in ("b", "B"):
        return to_hex(value)
    if code in ("i", "u"):
        return str(value)
    if code == "S":
        return _bytes32_to_string(value)
    return value


def _encode_value(code: str, value: Any) -> Any:
    if code == "a":
        return to_checksum_address(value)
    if code in ("b", "B"):
        return _to_bytes(value) if isinstance(value, str) else value
    if code in ("i", "u"):
        return int(value)
    if code == "S":
        return _string_to_bytes32(value)
    return value


def decode_parameters(encoded: str) -> Dict[str, Any]:
    """
    Decode encoded request parameters.

    Raises:
        ParameterDecodingError: If the data is not valid parameter encoding
    """
    try:
        data = _to_bytes(encoded)
    except ValueError as e:
        raise ParameterDecodingError(f"Parameters are not hex: {encoded}") from e

    if not data:
        return {}

    try:
        (header_raw,) = decode(["bytes32"], data[:32])
        header = _bytes32_to_string(header_raw)
    except Exception as e:
        raise ParameterDecodingError("Unable to read parameter header") from e

    if not header or header[0] != ENCODING_VERSION:
        raise ParameterDecodingError(f"Unknown parameter encoding version in header: {header!r}")

    codes = header[1:]
    abi_types: List[str] = ["bytes32"]
    for code in codes:
        if code not in PARAMETER_TYPES:
            raise ParameterDecodingError(f"Unknown parameter type code: {code!r}")
        abi_types.extend(["bytes32", PARAMETER_TYPES[code]])

    try:
        values = decode(abi_types, data)
    except Exception as e:
        raise ParameterDecodingError("Unable to decode parameter values") from e

    parameters: Dict[str, Any] = {}
    pairs = values[1:]
    for i, code in enumerate(codes):
        name = _bytes32_to_string(pairs[2 * i])
        parameters[name] = _decode_value(code, pairs[2 * i + 1])
    return parameters


def safe_decode_parameters(encoded: Optional[str]) -> Optional[Dict[str, Any]]:
    """Decode parameters, returning None instead of raising"""
    if encoded is None:
        return {}
    try:
        return decode_parameters(encoded)
    except (ParameterDecodingError, UnicodeDecodeError) as e:
        logger.debug("Unable to decode parameters", extra={"encoded": encoded, "error": str(e)})
        return None


def encode_parameters(parameters: Sequence[Tuple[str, str, Any]]) -> str:
    """
    Encode (type code, name, value) triples.

    Example:
        encode_parameters([("S", "from", "ETH"), ("u", "amount", 1)])
    """
    header = ENCODING_VERSION + "".join(code for code, _, _ in parameters)
    abi_types: List[str] = ["bytes32"]
    values: List[Any] = [_string_to_bytes32(header)]
    for code, name, value in parameters:
        if code not in PARAMETER_TYPES:
            raise ValueError(f"Unknown parameter type code: {code!r}")
        abi_types.extend(["bytes32", PARAMETER_TYPES[code]])
        values.extend([_string_to_bytes32(name), _encode_value(code, value)])
    return to_hex(encode(abi_types, values))
