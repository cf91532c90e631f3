"""Fetching the upstream metrics snapshot over HTTP."""
import logging

import requests

logger = logging.getLogger(__name__)

ACCEPT_HEADER = "text/plain;version=0.0.4;q=1.0,*/*;q=0.1"


class UpstreamError(Exception):
    """The upstream snapshot could not be fetched."""

    def __init__(self, url: str, message: str, status_code: int = None):
        super().__init__(f"{url}: {message}")
        self.url = url
        self.status_code = status_code


def fetch_snapshot(url: str, timeout: float, session: requests.Session = None) -> str:
    """
    Fetch the text exposition body from ``url``.

    Args:
        url: Upstream metrics URL
        timeout: Connect and read timeout in seconds
        session: Optional session to reuse connections

    Returns:
        The decoded response body

    Raises:
        UpstreamError: On network failure, timeout or a non-200 status
    """
    http = session or requests
    try:
        with http.get(url, timeout=timeout, headers={"Accept": ACCEPT_HEADER}, stream=True) as resp:
            if resp.status_code != 200:
                raise UpstreamError(url, f"unexpected status code {resp.status_code}", resp.status_code)
            body = resp.content
    except requests.Timeout as e:
        raise UpstreamError(url, f"timed out after {timeout}s: {e}")
    except requests.RequestException as e:
        raise UpstreamError(url, f"request failed: {e}")

    logger.debug(f"Fetched {len(body)} bytes from {url}")

    # The text exposition format is always UTF-8.
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise UpstreamError(url, f"body is not valid UTF-8: {e}")
