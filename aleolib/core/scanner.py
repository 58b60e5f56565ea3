"""
Unspent record discovery.

A scan walks ``[start, end)`` page by page, decrypts every record output of
the selected program with the caller's view key and keeps the records that
are owned, not excluded by nonce, accepted by the amount filter and not yet
spent. Records that fail decryption or belong to someone else are skipped;
only range, key and fetch failures abort a scan.
"""
from dataclasses import asdict, dataclass
from typing import Awaitable, Callable, Dict, Iterable, Iterator, List, Optional, Union

from aleolib.core.block_range import BlockRangeFetcher, PageFetcher, block_height
from aleolib.core.records import AmountFilter, DecodedRecord, EncryptedRecord, HeightRange
from aleolib.crypto.keys import PrivateKey, ViewKey
from aleolib.crypto.record_cipher import DecryptStatus, RecordCipher
from aleolib.errors import NotFoundError
from aleolib.utils.console import print_debug

DEFAULT_PROGRAM = "credits.aleo"

TransitionFinder = Callable[[str], Awaitable[str]]


@dataclass
class ScanStats:
    heights: int = 0
    requests: int = 0
    candidates: int = 0
    owned: int = 0
    malformed: int = 0
    excluded: int = 0
    filtered: int = 0
    spent: int = 0
    matched: int = 0

    def to_dict(self) -> Dict:
        return asdict(self)


def iter_encrypted_records(block: Dict, program: Optional[str] = DEFAULT_PROGRAM) -> Iterator[EncryptedRecord]:
    """Record outputs of a block in transaction, transition, output order."""
    height = block_height(block)
    for confirmed in block.get("transactions") or []:
        if not isinstance(confirmed, dict) or confirmed.get("type") != "execute":
            continue
        transaction = confirmed.get("transaction") or {}
        transitions = []
        # A rejected execution only keeps its fee transition.
        if confirmed.get("status") != "rejected":
            transitions.extend((transaction.get("execution") or {}).get("transitions") or [])
        fee_transition = (transaction.get("fee") or {}).get("transition")
        if fee_transition:
            transitions.append(fee_transition)

        for transition in transitions:
            if not isinstance(transition, dict):
                continue
            if program is not None and transition.get("program") != program:
                continue
            for index, output in enumerate(transition.get("outputs") or []):
                if not isinstance(output, dict) or output.get("type") != "record":
                    continue
                yield EncryptedRecord(
                    ciphertext=output.get("value"),
                    transition_id=transition.get("id", ""),
                    transaction_id=transaction.get("id", ""),
                    program=transition.get("program", ""),
                    function=transition.get("function", ""),
                    block_height=height,
                    output_index=index,
                )


class UnspentRecordScanner:
    def __init__(
        self,
        fetch_page: PageFetcher,
        cipher: RecordCipher,
        find_transition: Optional[TransitionFinder] = None,
        page_size: Optional[int] = None,
        max_concurrency: Optional[int] = None,
    ):
        self._fetch_page = fetch_page
        self.cipher = cipher
        self._find_transition = find_transition
        self.page_size = page_size
        self.max_concurrency = max_concurrency
        self.last_stats: Optional[ScanStats] = None

    async def scan(
        self,
        height_range: Union[HeightRange, tuple],
        private_key: Union[str, PrivateKey],
        amounts: Optional[Iterable[int]] = None,
        max_amount: Optional[int] = None,
        nonces: Optional[Iterable[str]] = None,
        program: Optional[str] = DEFAULT_PROGRAM,
        check_spent: bool = True,
    ) -> List[DecodedRecord]:
        if not isinstance(height_range, HeightRange):
            height_range = HeightRange.validated(*height_range)
        key = PrivateKey.from_string(private_key)
        amount_filter = AmountFilter.build(amounts, max_amount)
        excluded_nonces = frozenset(nonces or ())
        view_key = key.to_view_key()
        check_spent = check_spent and self._find_transition is not None

        fetcher = BlockRangeFetcher(self._fetch_page, self.page_size, self.max_concurrency)
        stats = ScanStats(heights=len(height_range))
        records: List[DecodedRecord] = []

        pages = fetcher.iter_pages(height_range)
        try:
            async for _, blocks in pages:
                for block in blocks:
                    for encrypted in iter_encrypted_records(block, program):
                        stats.candidates += 1
                        record = self._decrypt(encrypted, view_key, stats)
                        if record is None:
                            continue
                        if record.nonce in excluded_nonces:
                            stats.excluded += 1
                            continue
                        if not amount_filter.accepts(record.amount):
                            stats.filtered += 1
                            continue
                        if check_spent and await self._is_spent(record, key):
                            stats.spent += 1
                            continue
                        records.append(record)
        finally:
            await pages.aclose()
            stats.requests = fetcher.requests_made
            self.last_stats = stats

        stats.matched = len(records)
        print_debug(
            f"🔎 Scanned {height_range}: {stats.candidates} candidates, {stats.owned} owned, "
            f"{stats.matched} unspent, {stats.malformed} malformed, {stats.requests} requests"
        )
        return records

    def _decrypt(self, encrypted: EncryptedRecord, view_key: ViewKey, stats: ScanStats) -> Optional[DecodedRecord]:
        outcome = self.cipher.decrypt(encrypted.ciphertext, view_key)
        if outcome.status is DecryptStatus.MALFORMED:
            stats.malformed += 1
            print_debug(
                f"⚠️  Malformed record in {encrypted.transition_id} at height {encrypted.block_height}: {outcome.reason}"
            )
            return None
        if outcome.status is DecryptStatus.NOT_OWNED:
            return None
        stats.owned += 1
        return outcome.record.with_context(encrypted)

    async def _is_spent(self, record: DecodedRecord, key: PrivateKey) -> bool:
        record.serial_number = self.cipher.serial_number(record, key)
        try:
            await self._find_transition(record.serial_number)
        except NotFoundError:
            return False
        return True
