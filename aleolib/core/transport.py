import requests
from typing import Any, Dict, Optional

from aleolib import config
from aleolib.errors import FetchError, NotFoundError
from aleolib.utils.console import print_debug


class NodeTransport:
    """
    Blocking JSON transport over a requests.Session.

    Every failure surfaces as FetchError (NotFoundError for 404); nothing is
    retried here.
    """

    def __init__(self, base_url: str, timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout if timeout is not None else config.request_timeout()
        self.session = session if session is not None else requests.Session()
        self._owns_session = session is None

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def get_json(self, path: str, params: Optional[Dict] = None) -> Any:
        url = self.url_for(path)
        print_debug(f"🌐 GET {url} {params or ''}")
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise FetchError(f"Request to {url} timed out", url=url) from e
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Network error requesting {url}: {e}", url=url) from e
        return self._decode(response, url)

    def post_json(self, path: str, payload: Any) -> Any:
        url = self.url_for(path)
        print_debug(f"🌐 POST {url}")
        try:
            response = self.session.post(
                url,
                json=payload,
                headers={'Content-Type': 'application/json'},
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise FetchError(f"Request to {url} timed out", url=url) from e
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Network error requesting {url}: {e}", url=url) from e
        return self._decode(response, url)

    def _decode(self, response, url: str) -> Any:
        status = response.status_code
        print_debug(f"📡 {status} {url}")
        if status == 404:
            raise NotFoundError(f"Not found: {url}", url=url, status_code=status)
        if status < 200 or status >= 300:
            body = (response.text or "")[:200]
            raise FetchError(f"HTTP {status} from {url}: {body}", url=url, status_code=status)
        try:
            return response.json()
        except ValueError as e:
            raise FetchError(f"Malformed JSON from {url}", url=url, status_code=status) from e

    def close(self):
        if self._owns_session:
            self.session.close()
