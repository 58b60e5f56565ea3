"""
Data model for record scanning.

HeightRange and AmountFilter validate on construction through their
``validated``/``build`` constructors so that bad input is rejected before a
scan builds any fetch plan.
"""
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional

from aleolib.errors import InvalidRangeError
from aleolib.utils.formatting import format_credits
from aleolib.utils.validation import is_amount, is_height


@dataclass(frozen=True)
class HeightRange:
    """Half-open block height interval ``[start, end)``"""
    start: int
    end: int

    @classmethod
    def validated(cls, start: Any, end: Any) -> "HeightRange":
        if not isinstance(start, int) or isinstance(start, bool):
            raise InvalidRangeError("Start height must be an integer.", start, end)
        if not isinstance(end, int) or isinstance(end, bool):
            raise InvalidRangeError("End height must be an integer.", start, end)
        if not is_height(start):
            raise InvalidRangeError("Start height must be greater than or equal to 0.", start, end)
        if end <= start:
            raise InvalidRangeError("End height must be greater than start height.", start, end)
        return cls(start, end)

    def __len__(self) -> int:
        return self.end - self.start

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.start, self.end))

    def __contains__(self, height) -> bool:
        return self.start <= height < self.end

    def pages(self, size: int) -> List["HeightRange"]:
        """Split into consecutive sub-ranges of at most ``size`` heights."""
        if size < 1:
            raise ValueError("Page size must be positive")
        return [
            HeightRange(page_start, min(page_start + size, self.end))
            for page_start in range(self.start, self.end, size)
        ]

    def __str__(self):
        return f"[{self.start}, {self.end})"


@dataclass(frozen=True)
class AmountFilter:
    """
    Optional amount constraints applied to decrypted records.

    ``amounts`` keeps records whose amount is a member of the set;
    ``max_amount`` keeps records at or below the threshold. When both are
    given the set is applied first and then the threshold, so a record must
    satisfy both.
    """
    amounts: Optional[frozenset] = None
    max_amount: Optional[int] = None

    @classmethod
    def build(cls, amounts: Optional[Iterable[int]] = None, max_amount: Optional[int] = None) -> "AmountFilter":
        amount_set = None
        if amounts is not None:
            if isinstance(amounts, (str, bytes)):
                raise ValueError("Amounts must be a collection of integers")
            amount_set = frozenset(amounts)
            for amount in amount_set:
                if not is_amount(amount):
                    raise ValueError(f"Invalid amount: {amount!r}")
            if not amount_set:
                amount_set = None
        if max_amount is not None and not is_amount(max_amount):
            raise ValueError(f"Invalid maximum amount: {max_amount!r}")
        return cls(amount_set, max_amount)

    @property
    def is_empty(self) -> bool:
        return self.amounts is None and self.max_amount is None

    def accepts(self, amount: int) -> bool:
        if self.amounts is not None and amount not in self.amounts:
            return False
        if self.max_amount is not None and amount > self.max_amount:
            return False
        return True


@dataclass(frozen=True)
class EncryptedRecord:
    """A record output as it appears on chain, before decryption"""
    ciphertext: str
    transition_id: str
    transaction_id: str
    program: str
    function: str
    block_height: int
    output_index: int


@dataclass
class DecodedRecord:
    """Plaintext record owned by the scanning key"""
    owner: str
    amount: int
    nonce: str
    program: str = "credits.aleo"
    record_name: str = "credits"
    fields: Dict[str, Any] = field(default_factory=dict)
    transition_id: str = ""
    transaction_id: str = ""
    block_height: Optional[int] = None
    serial_number: Optional[str] = None

    @property
    def microcredits(self) -> int:
        return self.amount

    def to_plaintext(self) -> str:
        """Render in the node's record plaintext notation."""
        lines = [f"  owner: {self.owner}.private,"]
        lines.append(f"  microcredits: {self.amount}u64.private,")
        for name, value in self.fields.items():
            lines.append(f"  {name}: {value}.private,")
        lines.append(f"  _nonce: {self.nonce}.public")
        return "{\n" + "\n".join(lines) + "\n}"

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["amount_display"] = format_credits(self.amount)
        return data

    def with_context(self, encrypted: EncryptedRecord) -> "DecodedRecord":
        self.transition_id = encrypted.transition_id
        self.transaction_id = encrypted.transaction_id
        self.block_height = encrypted.block_height
        return self
