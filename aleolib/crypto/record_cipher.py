"""
Record decryption interface and the development record cipher.

``RecordCipher.decrypt`` never raises for a record that simply is not ours:
it returns a ``DecryptOutcome`` tagged OWNED, NOT_OWNED or MALFORMED so a
scan can tell "skip" apart from "abort".

``SealedRecordCipher`` seals record plaintext with Fernet under a key
derived from the owner's view key. It lets local devnets and tests produce
and scan records without snarkVM; it is not Aleo's record encryption.
"""
import base64
import binascii
import hashlib
import json
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from aleolib.core.records import DecodedRecord
from aleolib.crypto.keys import PrivateKey, ViewKey

CIPHERTEXT_PREFIX = "record1"
# Aleo base field modulus; serial numbers are rendered as field elements.
FIELD_MODULUS = 8444461749428370424248824938781546531375899335154063827935233455917409239041
# version(1) + timestamp(8) + iv(16) + one AES block(16) + hmac(32)
_MIN_TOKEN_BYTES = 73


class DecryptStatus(Enum):
    OWNED = "owned"
    NOT_OWNED = "not_owned"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class DecryptOutcome:
    status: DecryptStatus
    record: Optional[DecodedRecord] = None
    reason: str = ""

    @classmethod
    def owned(cls, record: DecodedRecord) -> "DecryptOutcome":
        return cls(DecryptStatus.OWNED, record)

    @classmethod
    def not_owned(cls) -> "DecryptOutcome":
        return cls(DecryptStatus.NOT_OWNED)

    @classmethod
    def malformed(cls, reason: str) -> "DecryptOutcome":
        return cls(DecryptStatus.MALFORMED, reason=reason)

    @property
    def is_owned(self) -> bool:
        return self.status is DecryptStatus.OWNED


class RecordCipher(ABC):
    """Decrypts record ciphertexts and derives serial numbers"""

    @abstractmethod
    def decrypt(self, ciphertext: str, view_key: ViewKey) -> DecryptOutcome:
        ...

    @abstractmethod
    def serial_number(self, record: DecodedRecord, private_key: PrivateKey) -> str:
        ...


class SealedRecordCipher(RecordCipher):
    def __init__(self, iterations: int = 100000):
        self.iterations = iterations
        self._fernets: Dict[str, Fernet] = {}
        self._lock = threading.Lock()

    def _fernet(self, view_key: ViewKey) -> Fernet:
        key_text = view_key.to_string()
        with self._lock:
            fernet = self._fernets.get(key_text)
            if fernet is None:
                kdf = PBKDF2HMAC(
                    algorithm=hashes.SHA256(),
                    length=32,
                    salt=b"aleolib-record-cipher",
                    iterations=self.iterations,
                )
                fernet = Fernet(base64.urlsafe_b64encode(kdf.derive(key_text.encode())))
                self._fernets[key_text] = fernet
        return fernet

    def seal(self, record: DecodedRecord, view_key: ViewKey) -> str:
        """Encrypt a record to the holder of ``view_key``."""
        payload = {
            "owner": record.owner,
            "microcredits": record.amount,
            "_nonce": record.nonce,
            "program": record.program,
            "record_name": record.record_name,
            "data": record.fields,
        }
        token = self._fernet(view_key).encrypt(json.dumps(payload, sort_keys=True).encode())
        return CIPHERTEXT_PREFIX + token.decode()

    def decrypt(self, ciphertext: str, view_key: ViewKey) -> DecryptOutcome:
        if not isinstance(ciphertext, str) or not ciphertext.startswith(CIPHERTEXT_PREFIX):
            return DecryptOutcome.malformed("missing record prefix")
        token = ciphertext[len(CIPHERTEXT_PREFIX):]
        try:
            raw = base64.urlsafe_b64decode(token.encode())
        except (binascii.Error, ValueError):
            return DecryptOutcome.malformed("ciphertext is not base64")
        if len(raw) < _MIN_TOKEN_BYTES:
            return DecryptOutcome.malformed("ciphertext too short")

        try:
            plaintext = self._fernet(view_key).decrypt(token.encode())
        except InvalidToken:
            return DecryptOutcome.not_owned()

        try:
            payload = json.loads(plaintext.decode())
        except (UnicodeDecodeError, ValueError):
            return DecryptOutcome.malformed("plaintext is not JSON")
        if not isinstance(payload, dict):
            return DecryptOutcome.malformed("plaintext is not an object")

        owner = payload.get("owner")
        amount = payload.get("microcredits")
        nonce = payload.get("_nonce")
        if not isinstance(owner, str) or not isinstance(nonce, str):
            return DecryptOutcome.malformed("missing owner or nonce")
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            return DecryptOutcome.malformed("invalid microcredits")
        if owner != str(view_key.to_address()):
            return DecryptOutcome.not_owned()

        data = payload.get("data") or {}
        if not isinstance(data, dict):
            return DecryptOutcome.malformed("invalid record data")

        record = DecodedRecord(
            owner=owner,
            amount=amount,
            nonce=nonce,
            program=str(payload.get("program") or "credits.aleo"),
            record_name=str(payload.get("record_name") or "credits"),
            fields=data,
        )
        return DecryptOutcome.owned(record)

    def serial_number(self, record: DecodedRecord, private_key: PrivateKey) -> str:
        material = "|".join(
            [private_key.to_string(), record.program, record.record_name, record.nonce]
        )
        digest = hashlib.sha256(material.encode()).digest()
        return f"{int.from_bytes(digest, 'big') % FIELD_MODULUS}field"
