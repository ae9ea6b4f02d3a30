# src/order_tracking/api/transport.py
from __future__ import annotations

from typing import Any, Dict, Optional
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

DEFAULT_TIMEOUT = 10
USER_AGENT = "order-tracking/0.1"

Params = Optional[Dict[str, Any]]
Headers = Optional[Dict[str, str]]


def retry_policy(max_retries: int, backoff_factor: float) -> Retry:
    """Retry connect/read failures and throttling/5xx answers on GET and POST."""
    return Retry(
        total=max_retries,
        connect=max_retries,
        read=max_retries,
        backoff_factor=backoff_factor,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset({"GET", "POST"}),
        raise_on_status=False,
    )


class RequestsTransport:
    """One pooled requests.Session shared by the platform client and every carrier adapter.

    Shopper lookups run with `max_retries=0` so a slow carrier costs one
    timeout, not several; the retry adapter is mounted only when asked for.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, max_retries: int = 0, backoff_factor: float = 0.3) -> None:
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers["User-Agent"] = USER_AGENT
        if max_retries > 0:
            adapter = HTTPAdapter(max_retries=retry_policy(max_retries, backoff_factor))
            for prefix in ("https://", "http://"):
                self.session.mount(prefix, adapter)

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        kwargs.setdefault("timeout", self.timeout)
        return self.session.request(method, url, **kwargs)

    def get(self, url: str, *, headers: Headers = None, params: Params = None) -> requests.Response:
        return self.request("GET", url, headers=headers, params=params)

    def post(self, url: str, *, headers: Headers = None, data: Any = None, json: Any = None, params: Params = None) -> requests.Response:
        return self.request("POST", url, headers=headers, data=data, json=json, params=params)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "RequestsTransport":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
