"""Final redirect back to the relying party."""

from __future__ import annotations

import asyncio
import logging
import webbrowser
from typing import Protocol
from urllib.parse import quote, urlparse

logger = logging.getLogger(__name__)

# Characters encodeURIComponent leaves alone beyond the unreserved set.
_URI_COMPONENT_SAFE = "!~*'()"


class Navigator(Protocol):
    """Performs navigation to a URL in the host environment."""

    async def navigate(self, url: str) -> None: ...


class BrowserNavigator:
    """Navigator that opens the URL in the system web browser."""

    async def navigate(self, url: str) -> None:
        opened = await asyncio.to_thread(webbrowser.open, url)
        if not opened:
            logger.warning("No browser available to open the redirect URL")


def build_redirect_url(redirect_uri: str, code: str, state: str | None) -> str:
    """Build the relying party callback URL carrying code and state.

    State is echoed exactly as received, and as an empty value when absent,
    so the relying party can check it against the value it sent.
    """
    separator = "&" if urlparse(redirect_uri).query else "?"
    return (
        f"{redirect_uri}{separator}"
        f"code={quote(code, safe=_URI_COMPONENT_SAFE)}"
        f"&state={quote(state or '', safe=_URI_COMPONENT_SAFE)}"
    )


class RedirectFinalizer:
    """Hands the authorization code to the relying party's redirect URI."""

    def __init__(self, navigator: Navigator | None = None):
        self.navigator = navigator or BrowserNavigator()

    async def finalize(self, redirect_uri: str, code: str, state: str | None) -> str:
        """Navigate to the callback URL and return it.

        The code is not kept anywhere once navigation starts.
        """
        url = build_redirect_url(redirect_uri, code, state)
        logger.info(f"Redirecting to {redirect_uri}")
        await self.navigator.navigate(url)
        return url
