"""
aleolib - Aleo node client with unspent record scanning
"""
__version__ = "1.0.0"

from .core.network_client import AleoNetworkClient
from .core.records import AmountFilter, DecodedRecord, EncryptedRecord, HeightRange
from .core.scanner import UnspentRecordScanner
from .crypto.keys import Account, Address, PrivateKey, ViewKey
from .crypto.record_cipher import DecryptOutcome, DecryptStatus, RecordCipher, SealedRecordCipher
from .errors import (
    AleoLibError,
    FetchError,
    InvalidKeyError,
    InvalidRangeError,
    NotFoundError,
    RefetchError,
    ScanTimeoutError,
)

__all__ = [
    'AleoNetworkClient',
    'UnspentRecordScanner',
    'HeightRange',
    'AmountFilter',
    'EncryptedRecord',
    'DecodedRecord',
    'Account',
    'Address',
    'PrivateKey',
    'ViewKey',
    'RecordCipher',
    'SealedRecordCipher',
    'DecryptOutcome',
    'DecryptStatus',
    'AleoLibError',
    'FetchError',
    'NotFoundError',
    'RefetchError',
    'InvalidKeyError',
    'InvalidRangeError',
    'ScanTimeoutError',
]
