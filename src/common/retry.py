from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

DEFAULT_STATUS_FORCELIST = (429, 500, 502, 503, 504)


def build_retrying_session(
    *,
    max_attempts: int = 4,
    backoff_base: float = 0.5,
    backoff_max: float = 8.0,
    status_forcelist: Sequence[int] = DEFAULT_STATUS_FORCELIST,
) -> requests.Session:
    """
    Build a requests Session that retries transient failures on GET.

    Retries on connection/read errors and on any status in
    `status_forcelist`, with exponential backoff capped at `backoff_max`.
    `Retry-After` headers are honoured.
    """
    retry = Retry(
        total=max(0, max_attempts - 1),
        connect=max(0, max_attempts - 1),
        read=max(0, max_attempts - 1),
        status=max(0, max_attempts - 1),
        backoff_factor=backoff_base,
        backoff_max=backoff_max,
        status_forcelist=tuple(status_forcelist),
        allowed_methods=frozenset({"GET", "HEAD"}),
        respect_retry_after_header=True,
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)

    session = requests.Session()
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def http_get_with_retries(
    url: str,
    *,
    params: Optional[Mapping[str, str | int]] = None,
    headers: Optional[Mapping[str, str]] = None,
    timeout: int = 60,
    session: Optional[requests.Session] = None,
    max_attempts: int = 4,
) -> requests.Response:
    """
    GET `url` through a retrying session and raise on a final HTTP error.

    A caller-provided `session` is used as-is (handy for tests); otherwise
    a fresh retrying session is built and closed after the call.
    """
    owns_session = session is None
    sess = session or build_retrying_session(max_attempts=max_attempts)
    try:
        logger.debug("GET %s", url)
        resp = sess.get(url, params=params, headers=headers, timeout=timeout)
        resp.raise_for_status()
        return resp
    finally:
        if owns_session:
            sess.close()


__all__ = ["DEFAULT_STATUS_FORCELIST", "build_retrying_session", "http_get_with_retries"]
