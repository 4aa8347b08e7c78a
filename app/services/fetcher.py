"""Download of remote AMP documents for ``POST /optimize/url``.

Only ``text/html`` responses from public hosts are accepted.  Redirects are
followed by hand so that each hop is checked against the same host rules as
the original URL, and the caller is told where the document actually came
from.
"""

import ipaddress
import socket
from typing import NamedTuple, Optional
from urllib.parse import urljoin, urlparse

import httpx

MAX_CONTENT_SIZE = 10 * 1024 * 1024  # 10 MB
TIMEOUT = 10  # seconds
MAX_REDIRECTS = 10
ALLOWED_SCHEMES = {"http", "https"}
HTML_CONTENT_TYPE = "text/html"


class FetchedDocument(NamedTuple):
    url: str
    """Final URL, after redirects."""
    html: str


def _is_private_address(hostname: str) -> bool:
    """Return True if *hostname* resolves to a private, loopback, or link-local address."""
    try:
        infos = socket.getaddrinfo(hostname, None)
    except socket.gaierror:
        return False

    for info in infos:
        # Drop IPv6 zone IDs ("fe80::1%eth0")
        raw_ip = info[4][0].split("%")[0]
        try:
            addr = ipaddress.ip_address(raw_ip)
        except ValueError:
            continue
        if addr.is_private or addr.is_loopback or addr.is_link_local or addr.is_reserved:
            return True
    return False


def _validate_url(url: str) -> None:
    """Raise ValueError if *url* may not be fetched."""
    parsed = urlparse(url)

    if parsed.scheme not in ALLOWED_SCHEMES:
        raise ValueError(f"Scheme '{parsed.scheme}' is not allowed. Use http or https.")

    if not parsed.hostname:
        raise ValueError("URL must have a valid hostname.")

    if _is_private_address(parsed.hostname):
        raise ValueError("Requests to private/internal addresses are not allowed.")


def _redirect_target(response: httpx.Response, current_url: str) -> str:
    target = urljoin(current_url, response.headers.get("location", ""))
    _validate_url(target)
    return target


def _check_content_type(response: httpx.Response) -> None:
    media_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
    if media_type != HTML_CONTENT_TYPE:
        raise ValueError(
            f"Expected an HTML document, got content type '{media_type or 'none'}'."
        )


async def _read_body(response: httpx.Response) -> str:
    """Read the streamed body of *response*, enforcing MAX_CONTENT_SIZE."""
    declared = response.headers.get("content-length")
    if declared and int(declared) > MAX_CONTENT_SIZE:
        raise RuntimeError("Document exceeds the maximum allowed size.")

    body = bytearray()
    async for chunk in response.aiter_bytes():
        body.extend(chunk)
        if len(body) > MAX_CONTENT_SIZE:
            raise RuntimeError("Document exceeds the maximum allowed size.")

    return body.decode(response.charset_encoding or "utf-8", errors="replace")


async def fetch_document(
    url: str, transport: Optional[httpx.AsyncBaseTransport] = None
) -> FetchedDocument:
    """Download the AMP document at *url*.

    Args:
        url: Page to fetch.
        transport: Optional httpx transport, used in place of the network.

    Raises:
        ValueError: if the URL or a redirect target is not allowed, or the
            response is not ``text/html``.
        httpx.HTTPError: on network or HTTP errors.
        RuntimeError: if the body exceeds MAX_CONTENT_SIZE or more than
            MAX_REDIRECTS redirects are needed.
    """
    _validate_url(url)

    current_url = url
    async with httpx.AsyncClient(
        follow_redirects=False,
        timeout=TIMEOUT,
        transport=transport,
        headers={"Accept": HTML_CONTENT_TYPE},
    ) as client:
        # The first request plus at most MAX_REDIRECTS hops.
        for _ in range(MAX_REDIRECTS + 1):
            async with client.stream("GET", current_url) as response:
                if response.is_redirect:
                    current_url = _redirect_target(response, current_url)
                    continue

                response.raise_for_status()
                _check_content_type(response)
                html = await _read_body(response)
                return FetchedDocument(url=current_url, html=html)

    raise RuntimeError("Too many redirects.")
