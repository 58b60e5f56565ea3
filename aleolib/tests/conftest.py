import os
import threading
import time
from urllib.parse import urlparse

import pytest

from aleolib.core.network_client import AleoNetworkClient
from aleolib.core.records import DecodedRecord
from aleolib.crypto.keys import Account
from aleolib.crypto.record_cipher import SealedRecordCipher

NODE_HOST = "http://node.test"
NODE_BASE = f"{NODE_HOST}/testnet3"
PRIVATE_KEY = "APrivateKey1zkp8CZNn3yeCseEtxuVPbDCwSyhGW6yZKUYKfgXmcpoGPWH"


def _response(status_code, payload):
    class Response:
        def __init__(self, code, data):
            self.status_code = code
            self._data = data
            self.text = str(data)

        def json(self):
            if isinstance(self._data, Exception):
                raise self._data
            return self._data

    return Response(status_code, payload)


def tx_id(n):
    return "at1" + ("q" * 57) + "qpzry9x8gf"[n % 10]


def make_block(height, transactions=None):
    return {
        "block_hash": f"ab1hash{height}",
        "previous_hash": f"ab1hash{height - 1}" if height else "ab1genesis",
        "header": {"metadata": {"height": height, "timestamp": 1700000000 + height}},
        "transactions": transactions or [],
    }


def record_output(ciphertext, output_id="1field"):
    return {"type": "record", "id": output_id, "checksum": "0field", "value": ciphertext}


def transition(outputs, program="credits.aleo", function="transfer_private", transition_id="au1transition"):
    return {
        "id": transition_id,
        "program": program,
        "function": function,
        "inputs": [],
        "outputs": outputs,
    }


def execute(transaction_id, transitions, fee_transition=None, status="accepted", index=0):
    transaction = {
        "type": "execute",
        "id": transaction_id,
        "execution": {"transitions": transitions},
    }
    if fee_transition is not None:
        transaction["fee"] = {"transition": fee_transition}
    return {"status": status, "type": "execute", "index": index, "transaction": transaction}


class FakeNode:
    """Stands in for requests.Session against an in-memory chain"""

    def __init__(self, blocks=None):
        self.blocks = list(blocks or [])
        self.spent = {}
        self.programs = {"credits.aleo": "program credits.aleo;\n\nrecord credits:\n    owner as address.private;\n"}
        self.mappings = {("credits.aleo", "account", "aleo1someone"): "100u64"}
        self.transactions = {}
        self.failing_heights = set()
        self.short_pages = False
        self.delay = 0.0
        self.calls = []
        self.posted = []
        self.closed = False
        self.used_after_close = False
        self._lock = threading.Lock()

    # chain helpers -----------------------------------------------------

    def extend_empty(self, count):
        for _ in range(count):
            self.blocks.append(make_block(len(self.blocks)))

    def add_block(self, transactions):
        block = make_block(len(self.blocks), transactions)
        self.blocks.append(block)
        return block

    @property
    def tip(self):
        return len(self.blocks) - 1

    def block_page_calls(self):
        return [params for path, params in self.calls if path == "/blocks"]

    # requests.Session interface -----------------------------------------

    def get(self, url, params=None, timeout=None):
        path = urlparse(url).path
        assert path.startswith("/testnet3"), path
        path = path[len("/testnet3"):]
        with self._lock:
            self.calls.append((path, dict(params or {})))
        if self.delay:
            time.sleep(self.delay)
        if self.closed:
            self.used_after_close = True
        return self._route(path, params or {})

    def post(self, url, json=None, headers=None, timeout=None):
        with self._lock:
            self.posted.append(json)
        if not isinstance(json, dict) or "id" not in json:
            return _response(400, "Invalid transaction")
        return _response(200, json["id"])

    def close(self):
        self.closed = True

    def _route(self, path, params):
        parts = path.strip("/").split("/")
        if path == "/blocks":
            return self._blocks(int(params["start"]), int(params["end"]))
        if parts[0] == "latest":
            if not self.blocks:
                return _response(500, "empty chain")
            latest = self.blocks[-1]
            return {
                "height": _response(200, self.tip),
                "block": _response(200, latest),
                "hash": _response(200, latest["block_hash"]),
                "stateRoot": _response(200, "sr1fakestateroot"),
            }.get(parts[1], _response(404, "Not Found"))
        if parts[0] == "block":
            height = self._height(parts[1])
            if height is None:
                return _response(404, "Not Found")
            if len(parts) == 3 and parts[2] == "transactions":
                return _response(200, self.blocks[height]["transactions"])
            return _response(200, self.blocks[height])
        if parts[0] == "transaction":
            if parts[1] in self.transactions:
                return _response(200, self.transactions[parts[1]])
            return _response(404, "Not Found")
        if parts[:2] == ["find", "transitionID"]:
            if parts[2] in self.spent:
                return _response(200, self.spent[parts[2]])
            return _response(404, "Not Found")
        if parts[:3] == ["find", "transactionID", "deployment"]:
            if parts[3] in self.programs:
                return _response(200, tx_id(0))
            return _response(404, "Not Found")
        if parts[0] == "program":
            program = self.programs.get(parts[1])
            if program is None:
                return _response(404, "Not Found")
            if len(parts) == 2:
                return _response(200, program)
            if parts[2] == "mappings":
                return _response(200, ["account"])
            value = self.mappings.get((parts[1], parts[3], parts[4]))
            return _response(200, value)
        if parts[0] == "memoryPool":
            return _response(200, [])
        return _response(404, "Not Found")

    def _height(self, text):
        try:
            height = int(text)
        except ValueError:
            return None
        if 0 <= height < len(self.blocks):
            return height
        return None

    def _blocks(self, start, end):
        if end <= start or end - start > 50:
            return _response(400, "Invalid block range")
        if any(start <= height < end for height in self.failing_heights):
            return _response(500, "Internal Server Error")
        if start >= len(self.blocks):
            return _response(404, "Not Found")
        page = self.blocks[start:end]
        if self.short_pages:
            page = page[:-1]
        return _response(200, page)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in list(os.environ):
        if name.startswith("ALEOLIB_") or name == "ALEO_PRIVATE_KEY":
            monkeypatch.delenv(name)


@pytest.fixture
def account():
    return Account(PRIVATE_KEY)


@pytest.fixture
def stranger():
    return Account()


@pytest.fixture
def cipher():
    return SealedRecordCipher(iterations=1000)


@pytest.fixture
def node():
    return FakeNode()


@pytest.fixture
def client(node, cipher):
    client = AleoNetworkClient(NODE_HOST, network="testnet3", cipher=cipher, session=node, max_concurrency=4)
    yield client
    client.close()


@pytest.fixture
def seal(cipher):
    """Build a record ciphertext owned by ``owner``."""
    counter = {"n": 0}

    def _seal(owner, amount, nonce=None, program="credits.aleo"):
        counter["n"] += 1
        record = DecodedRecord(
            owner=str(owner.address),
            amount=amount,
            nonce=nonce or f"{counter['n']}group",
            program=program,
        )
        return cipher.seal(record, owner.view_key)

    return _seal
