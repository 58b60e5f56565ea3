import re
from typing import Any, Optional

# Base58 alphabet used by Aleo key encodings (no 0, O, I, l).
BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_PRIVATE_KEY_RE = re.compile(r"^APrivateKey1[%s]{47}$" % BASE58_ALPHABET)
_VIEW_KEY_RE = re.compile(r"^AViewKey1[%s]{44}$" % BASE58_ALPHABET)
# Bech32 data part: lowercase, no 1, b, i, o.
BECH32_ALPHABET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
_ADDRESS_RE = re.compile(r"^aleo1[%s]{58}$" % BECH32_ALPHABET)
_PROGRAM_ID_RE = re.compile(r"^[a-z][a-z0-9_]*\.aleo$")
_FIELD_RE = re.compile(r"^[0-9]+field$")

MAX_PROGRAM_ID_LEN = 64


def is_safe_text(value: Optional[str], max_len: int = 256) -> bool:
    if value is None:
        return False
    text = str(value)
    if len(text) == 0 or len(text) > max_len:
        return False
    for ch in text:
        code = ord(ch)
        if code < 32 or code == 127:
            return False
    return True


def is_valid_private_key(key: Optional[str]) -> bool:
    if not isinstance(key, str):
        return False
    return bool(_PRIVATE_KEY_RE.fullmatch(key.strip()))


def is_valid_view_key(key: Optional[str]) -> bool:
    if not isinstance(key, str):
        return False
    return bool(_VIEW_KEY_RE.fullmatch(key.strip()))


def is_valid_address(addr: Optional[str]) -> bool:
    if not isinstance(addr, str):
        return False
    return bool(_ADDRESS_RE.fullmatch(addr.strip()))


def is_valid_program_id(value: Optional[str]) -> bool:
    if not is_safe_text(value, max_len=MAX_PROGRAM_ID_LEN):
        return False
    return bool(_PROGRAM_ID_RE.fullmatch(str(value)))


def is_valid_field(value: Optional[str]) -> bool:
    if not isinstance(value, str):
        return False
    return bool(_FIELD_RE.fullmatch(value.strip()))


def is_height(value: Any) -> bool:
    """Block heights are plain non-negative ints; bool is rejected."""
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def is_amount(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0
