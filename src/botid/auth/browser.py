"""Best-effort opening of URLs in the local browser."""

import logging
import webbrowser
from typing import Protocol

logger = logging.getLogger(__name__)


class BrowserOpener(Protocol):
    """Opens a URL for the user. Returns True if a browser was launched."""

    def open(self, url: str) -> bool: ...


class SystemBrowserOpener:
    """Opens URLs with the platform's default browser."""

    def open(self, url: str) -> bool:
        try:
            return webbrowser.open(url)
        except (webbrowser.Error, OSError) as e:
            logger.debug("Could not open browser: %s", e)
            return False


class NullBrowserOpener:
    """Never opens anything (headless hosts, tests)."""

    def open(self, url: str) -> bool:
        return False
