"""Figma session login via the browser sign-in endpoint.

Figma has no API token flow for search, so we log in the way the web app
does and reuse the ``figma.st`` session cookie it hands back. The session
seems to expire after 1-3 days; expiry is only discovered when a later
request fails.
"""

import logging
import re

import httpx

from .config import FigmaOptions
from .exceptions import AuthenticationError

logger = logging.getLogger(__name__)

BASE_URL = "https://www.figma.com"
LOGIN_PATH = "/api/session/login"
SESSION_COOKIE = "figma.st"

_SESSION_COOKIE_RE = re.compile(rf"^{re.escape(SESSION_COOKIE)}=([^;]+)")


def extract_session_token(set_cookie_headers: list[str]) -> str | None:
    """Pull the session token out of a list of Set-Cookie values.

    The first cookie named ``figma.st`` with a non-empty value wins. The
    token is everything between ``=`` and the next ``;``.
    """
    for header in set_cookie_headers:
        match = _SESSION_COOKIE_RE.match(header)
        if match:
            return match.group(1)
    return None


def authenticated_client(
    token: str,
    *,
    base_url: str = BASE_URL,
    transport: httpx.AsyncBaseTransport | None = None,
    timeout: float = 30.0,
) -> httpx.AsyncClient:
    """Create a client that sends the session cookie on every request."""
    return httpx.AsyncClient(
        base_url=base_url,
        headers={"Cookie": f"{SESSION_COOKIE}={token}"},
        transport=transport,
        timeout=timeout,
    )


async def login(
    options: FigmaOptions,
    *,
    base_url: str = BASE_URL,
    transport: httpx.AsyncBaseTransport | None = None,
    timeout: float = 30.0,
) -> httpx.AsyncClient:
    """Log into Figma and return an authenticated client.

    Args:
        options: Credentials to log in with.
        base_url: Figma origin.
        transport: Optional httpx transport (tests, proxies).
        timeout: Request timeout in seconds.

    Returns:
        AsyncClient bound to the new session.

    Raises:
        AuthenticationError: If no session cookie came back. Wrong
            credentials, a CAPTCHA challenge and an API change all look
            the same from here.
    """
    logger.info("Logging into Figma as %s", options.user)

    async with httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout) as client:
        resp = await client.post(
            LOGIN_PATH,
            json={"email": options.user, "password": options.password, "username": options.user},
            headers={"Content-Type": "application/json"},
        )

    token = extract_session_token(resp.headers.get_list("set-cookie"))
    if not token:
        logger.warning("Figma login returned no session cookie (status %d)", resp.status_code)
        raise AuthenticationError(f"Figma login failed (status {resp.status_code}): no session cookie")

    logger.info("Figma login succeeded")
    return authenticated_client(token, base_url=base_url, transport=transport, timeout=timeout)
