"""
Aleo key material: private key, view key, address and the Account bundle.

Parsing checks the textual encoding only (prefix, alphabet and length).
View key and address derivation here is the development scheme paired with
``SealedRecordCipher``; it is deterministic but is not Aleo's curve
arithmetic, which lives in the snarkVM bindings and is out of scope.
"""
import hashlib
import secrets
from typing import Optional, Union

from aleolib.errors import InvalidKeyError
from aleolib.utils.validation import (
    BASE58_ALPHABET,
    BECH32_ALPHABET,
    is_valid_address,
    is_valid_private_key,
    is_valid_view_key,
)

PRIVATE_KEY_PREFIX = "APrivateKey1"
VIEW_KEY_PREFIX = "AViewKey1"
ADDRESS_PREFIX = "aleo1"


def _encode_base58(data: bytes, length: int) -> str:
    number = int.from_bytes(data, "big")
    chars = []
    while len(chars) < length:
        number, rem = divmod(number, 58)
        chars.append(BASE58_ALPHABET[rem])
    return "".join(reversed(chars))


def _encode_bech32_body(data: bytes, length: int) -> str:
    number = int.from_bytes(data, "big")
    chars = []
    while len(chars) < length:
        number, rem = divmod(number, 32)
        chars.append(BECH32_ALPHABET[rem])
    return "".join(reversed(chars))


class Address:
    def __init__(self, value: str):
        if not is_valid_address(value):
            raise InvalidKeyError("Invalid Aleo address.")
        self._value = value.strip()

    def __str__(self):
        return self._value

    def __repr__(self):
        return f"Address({self._value!r})"

    def __eq__(self, other):
        if isinstance(other, Address):
            return self._value == other._value
        if isinstance(other, str):
            return self._value == other
        return NotImplemented

    def __hash__(self):
        return hash(self._value)


class ViewKey:
    def __init__(self, value: str):
        if not is_valid_view_key(value):
            raise InvalidKeyError("Invalid Aleo view key.")
        self._value = value.strip()

    @classmethod
    def from_string(cls, value: str) -> "ViewKey":
        return cls(value)

    def to_address(self) -> Address:
        digest = hashlib.sha512(self._value.encode()).digest()
        return Address(ADDRESS_PREFIX + _encode_bech32_body(digest, 58))

    def to_string(self) -> str:
        return self._value

    def __str__(self):
        return self._value

    def __repr__(self):
        return "ViewKey(<redacted>)"

    def __eq__(self, other):
        return isinstance(other, ViewKey) and self._value == other._value

    def __hash__(self):
        return hash(self._value)


class PrivateKey:
    """Parsed ``APrivateKey1...`` key. ``repr`` never shows the secret."""

    def __init__(self, value: str):
        if not is_valid_private_key(value):
            raise InvalidKeyError("Error parsing private key provided.")
        self._value = value.strip()

    @classmethod
    def from_string(cls, value) -> "PrivateKey":
        if isinstance(value, PrivateKey):
            return value
        return cls(value)

    @classmethod
    def generate(cls) -> "PrivateKey":
        body = _encode_base58(secrets.token_bytes(40), 44)
        return cls(PRIVATE_KEY_PREFIX + "zkp" + body)

    def to_view_key(self) -> ViewKey:
        digest = hashlib.sha256(b"aleolib-view-key" + self._value.encode()).digest()
        return ViewKey(VIEW_KEY_PREFIX + _encode_base58(digest, 44))

    def to_address(self) -> Address:
        return self.to_view_key().to_address()

    def to_string(self) -> str:
        return self._value

    def __str__(self):
        return self._value

    def __repr__(self):
        return "PrivateKey(<redacted>)"

    def __eq__(self, other):
        return isinstance(other, PrivateKey) and self._value == other._value

    def __hash__(self):
        return hash(self._value)


class Account:
    """Key material bundle: private key, view key and address"""

    def __init__(self, private_key: Optional[Union[str, PrivateKey]] = None):
        if private_key is None:
            self._private_key = PrivateKey.generate()
        else:
            self._private_key = PrivateKey.from_string(private_key)
        self._view_key = self._private_key.to_view_key()
        self._address = self._view_key.to_address()

    @property
    def private_key(self) -> PrivateKey:
        return self._private_key

    @property
    def view_key(self) -> ViewKey:
        return self._view_key

    @property
    def address(self) -> Address:
        return self._address

    def __repr__(self):
        return f"Account(address={str(self._address)!r})"

    def __eq__(self, other):
        return isinstance(other, Account) and self._private_key == other._private_key

    def __hash__(self):
        return hash(self._private_key)
