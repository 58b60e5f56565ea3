import pytest
import requests
from unittest.mock import Mock

from aleolib.core.transport import NodeTransport
from aleolib.errors import FetchError, NotFoundError
from .conftest import _response


def _transport(response=None, side_effect=None):
    session = Mock()
    session.get.return_value = response
    session.post.return_value = response
    if side_effect is not None:
        session.get.side_effect = side_effect
        session.post.side_effect = side_effect
    return NodeTransport("http://node.test/testnet3/", timeout=5, session=session), session


class TestNodeTransport:
    def test_get_json_success(self):
        transport, session = _transport(_response(200, {"height": 7}))

        assert transport.get_json("/latest/block") == {"height": 7}
        session.get.assert_called_once_with(
            "http://node.test/testnet3/latest/block", params=None, timeout=5
        )

    def test_404_is_not_found(self):
        transport, _ = _transport(_response(404, "Not Found"))

        with pytest.raises(NotFoundError) as exc:
            transport.get_json("/block/99999999")
        assert exc.value.status_code == 404
        assert exc.value.url.endswith("/block/99999999")

    def test_server_error_is_fetch_error(self):
        transport, _ = _transport(_response(500, "boom"))

        with pytest.raises(FetchError) as exc:
            transport.get_json("/latest/height")
        assert not isinstance(exc.value, NotFoundError)
        assert exc.value.status_code == 500
        assert "boom" in str(exc.value)

    def test_connection_error_is_wrapped(self):
        transport, _ = _transport(side_effect=requests.exceptions.ConnectionError("refused"))

        with pytest.raises(FetchError) as exc:
            transport.get_json("/latest/height")
        assert isinstance(exc.value.__cause__, requests.exceptions.ConnectionError)

    def test_timeout_is_wrapped(self):
        transport, _ = _transport(side_effect=requests.exceptions.Timeout())

        with pytest.raises(FetchError, match="timed out"):
            transport.get_json("/latest/height")

    def test_malformed_json(self):
        transport, _ = _transport(_response(200, ValueError("not json")))

        with pytest.raises(FetchError, match="Malformed JSON"):
            transport.get_json("/latest/height")

    def test_post_json(self):
        transport, session = _transport(_response(200, "at1abc"))

        assert transport.post_json("/transaction/broadcast", {"id": "at1abc"}) == "at1abc"
        _, kwargs = session.post.call_args
        assert kwargs["json"] == {"id": "at1abc"}

    def test_borrowed_session_not_closed(self):
        transport, session = _transport(_response(200, 1))
        transport.close()

        session.close.assert_not_called()
