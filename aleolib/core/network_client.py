"""
Async client for an Aleo node's REST API.

Requests go through a blocking NodeTransport on the client's own bounded
thread pool, so awaiting several accessors at once never runs more than
``max_concurrency`` requests in parallel.
"""
import asyncio
import functools
import json
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Optional, Union

import requests

from aleolib import config
from aleolib.core.block_range import BlockRangeFetcher
from aleolib.core.records import AmountFilter, DecodedRecord, HeightRange
from aleolib.core.scanner import DEFAULT_PROGRAM, UnspentRecordScanner
from aleolib.core.transport import NodeTransport
from aleolib.crypto.keys import Account, PrivateKey
from aleolib.crypto.record_cipher import RecordCipher, SealedRecordCipher
from aleolib.errors import FetchError, InvalidKeyError, InvalidRangeError, ScanTimeoutError
from aleolib.utils.validation import is_height, is_valid_program_id


class AleoNetworkClient:
    """Accessors for blocks, transactions, transitions and programs, plus record scanning"""

    def __init__(
        self,
        host: Optional[str] = None,
        network: Optional[str] = None,
        account: Optional[Account] = None,
        timeout: Optional[float] = None,
        scan_timeout: Optional[float] = None,
        max_concurrency: Optional[int] = None,
        page_size: Optional[int] = None,
        cipher: Optional[RecordCipher] = None,
        transport: Optional[NodeTransport] = None,
        session: Optional[requests.Session] = None,
    ):
        self.host = (host or config.default_host()).rstrip('/')
        self.network = config.default_network() if network is None else network.strip('/')
        self.base_url = f"{self.host}/{self.network}" if self.network else self.host
        self.transport = transport or NodeTransport(self.base_url, timeout=timeout, session=session)
        self.max_concurrency = max(1, max_concurrency or config.max_concurrency())
        self.page_size = page_size
        self.scan_timeout = scan_timeout if scan_timeout is not None else config.scan_timeout()
        self.cipher = cipher or SealedRecordCipher()
        self.account = account
        self.last_scan_stats = None
        self._executor = ThreadPoolExecutor(max_workers=self.max_concurrency, thread_name_prefix="aleolib")

    def set_account(self, account: Account):
        self.account = account

    def get_account(self) -> Optional[Account]:
        return self.account

    def close(self):
        """Drop queued requests, wait for running ones, then release the session."""
        self._executor.shutdown(wait=True, cancel_futures=True)
        self.transport.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await asyncio.get_running_loop().run_in_executor(None, self.close)

    async def _call(self, fn, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(fn, *args))

    async def _get(self, path: str, message: str, params: Optional[Dict] = None) -> Any:
        try:
            return await self._call(self.transport.get_json, path, params)
        except FetchError as e:
            raise e.with_message(message) from e

    async def _fetch_block_page(self, start: int, end: int) -> List[Dict]:
        return await self._call(self.transport.get_json, "/blocks", {"start": start, "end": end})

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    async def get_block(self, height: int) -> Dict:
        return await self._get(f"/block/{height}", f"Error fetching block. (height {height})")

    async def get_block_range(self, start: int, end: int) -> List[Dict]:
        """Blocks in the half-open range ``[start, end)``, ascending."""
        HeightRange.validated(start, end)
        fetcher = BlockRangeFetcher(self._fetch_block_page, self.page_size, self.max_concurrency)
        return await fetcher.fetch_range(start, end)

    async def get_latest_block(self) -> Dict:
        return await self._get("/latest/block", "Error fetching latest block.")

    async def get_latest_hash(self) -> str:
        return await self._get("/latest/hash", "Error fetching latest hash.")

    async def get_latest_height(self) -> int:
        height = await self._get("/latest/height", "Error fetching latest height.")
        if not is_height(height):
            raise FetchError(
                f"Error fetching latest height. Unexpected response: {height!r}",
                url=self.transport.url_for("/latest/height"),
            )
        return height

    async def get_state_root(self) -> str:
        return await self._get("/latest/stateRoot", "Error fetching latest state root.")

    # ------------------------------------------------------------------
    # Programs
    # ------------------------------------------------------------------

    async def get_program(self, program_id: str) -> str:
        return await self._get(f"/program/{program_id}", f"Error fetching program. ({program_id})")

    async def get_program_mapping_names(self, program_id: str) -> List[str]:
        return await self._get(
            f"/program/{program_id}/mappings",
            f"Error fetching program mappings. ({program_id})",
        )

    async def get_program_mapping_value(self, program_id: str, mapping_name: str, key: str) -> Optional[str]:
        return await self._get(
            f"/program/{program_id}/mapping/{mapping_name}/{key}",
            f"Error fetching mapping value. ({program_id}/{mapping_name}/{key})",
        )

    async def get_deployment_transaction_id_for_program(self, program_id: str) -> str:
        return await self._get(
            f"/find/transactionID/deployment/{program_id}",
            f"Error fetching deployment transaction for program. ({program_id})",
        )

    async def get_deployment_transaction_for_program(self, program_id: str) -> Dict:
        transaction_id = await self.get_deployment_transaction_id_for_program(program_id)
        return await self.get_transaction(transaction_id)

    # ------------------------------------------------------------------
    # Transactions and transitions
    # ------------------------------------------------------------------

    async def get_transaction(self, transaction_id: str) -> Dict:
        return await self._get(
            f"/transaction/{transaction_id}",
            f"Error fetching transaction. ({transaction_id})",
        )

    async def get_transactions(self, height: int) -> List[Dict]:
        return await self._get(
            f"/block/{height}/transactions",
            f"Error fetching transactions. (height {height})",
        )

    async def get_transactions_in_mempool(self) -> List[Dict]:
        return await self._get("/memoryPool/transactions", "Error fetching transactions from mempool.")

    async def get_transition_id(self, input_or_output_id: str) -> str:
        return await self._get(
            f"/find/transitionID/{input_or_output_id}",
            f"Error fetching transition ID. ({input_or_output_id})",
        )

    async def submit_transaction(self, transaction: Union[str, Dict]) -> str:
        payload = json.loads(transaction) if isinstance(transaction, str) else transaction
        try:
            return await self._call(self.transport.post_json, "/transaction/broadcast", payload)
        except FetchError as e:
            raise e.with_message("Error posting transaction.") from e

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def _resolve_private_key(self, private_key: Optional[Union[str, PrivateKey]]) -> PrivateKey:
        if private_key is None:
            if self.account is None:
                raise InvalidKeyError(
                    "Private key must be specified in an argument to find_unspent_records "
                    "or set in the AleoNetworkClient"
                )
            return self.account.private_key
        return PrivateKey.from_string(private_key)

    async def find_unspent_records(
        self,
        start_height: int,
        end_height: Optional[int] = None,
        private_key: Optional[Union[str, PrivateKey]] = None,
        amounts: Optional[Iterable[int]] = None,
        max_amount: Optional[int] = None,
        nonces: Optional[Iterable[str]] = None,
        program: Optional[str] = DEFAULT_PROGRAM,
        check_spent: bool = True,
        timeout: Optional[float] = None,
    ) -> List[DecodedRecord]:
        """
        Find unspent records owned by a private key in ``[start_height, end_height)``.

        With ``end_height=None`` the scan runs through the current chain tip.
        ``amounts`` keeps only records whose amount is in the collection and
        ``max_amount`` only records at or below it; both together must hold.
        ``nonces`` excludes records already selected elsewhere. Raises
        InvalidRangeError, InvalidKeyError or ValueError before any request
        for bad input, FetchError when the node cannot serve the range, and
        ScanTimeoutError when ``timeout`` (or the client default) elapses.
        """
        timeout = timeout if timeout is not None else self.scan_timeout
        scan = self._find_unspent_records(
            start_height, end_height, private_key, amounts, max_amount, nonces, program, check_spent
        )
        if not timeout:
            return await scan
        try:
            return await asyncio.wait_for(scan, timeout)
        except asyncio.TimeoutError as e:
            raise ScanTimeoutError(
                f"Scan from height {start_height} did not finish within {timeout} seconds"
            ) from e

    async def _find_unspent_records(self, start_height, end_height, private_key, amounts, max_amount, nonces, program, check_spent):
        if end_height is not None:
            height_range = HeightRange.validated(start_height, end_height)
        elif not is_height(start_height):
            raise InvalidRangeError("Start height must be greater than or equal to 0.", start_height, end_height)
        key = self._resolve_private_key(private_key)
        amount_filter = AmountFilter.build(amounts, max_amount)
        if program is not None and not is_valid_program_id(program):
            raise ValueError(f"Invalid program id: {program!r}")

        if end_height is None:
            latest_height = await self.get_latest_height()
            height_range = HeightRange.validated(start_height, latest_height + 1)

        scanner = UnspentRecordScanner(
            self._fetch_block_page,
            self.cipher,
            find_transition=self.get_transition_id,
            page_size=self.page_size,
            max_concurrency=self.max_concurrency,
        )
        try:
            return await scanner.scan(
                height_range,
                key,
                amounts=amount_filter.amounts,
                max_amount=amount_filter.max_amount,
                nonces=nonces,
                program=program,
                check_spent=check_spent,
            )
        finally:
            self.last_scan_stats = scanner.last_stats
