"""Device authorization login against the BotID registry.

The user signs in out-of-band at the verification URL while this process
polls the registry until the device code is exchanged for an access token.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

import httpx

from ..core.config import get_settings
from ..core.errors import (
    DeviceAuthCancelledError,
    DeviceAuthServerError,
    DeviceAuthTimeoutError,
    DeviceCodeConsumedError,
    DeviceCodeExpiredError,
)
from ..core.models import AuthSession, DeviceCodeResponse
from ..core.protocol import normalize_url
from ..registry import RegistryClient
from ..storage import CredentialStore, FileCredentialStore
from .browser import BrowserOpener, SystemBrowserOpener

logger = logging.getLogger(__name__)

PromptCallback = Callable[[str, str], Any]
OpenCallback = Callable[[], Any]


class DeviceAuthFlow:
    """One device authorization run.

    ``on_prompt(verification_url, user_code)`` is called exactly once before
    polling starts; ``on_open()`` is called only if the browser was opened.
    Return values of both callbacks are ignored.
    """

    def __init__(
        self,
        on_prompt: PromptCallback,
        on_open: Optional[OpenCallback] = None,
        registry: Optional[RegistryClient] = None,
        store: Optional[CredentialStore] = None,
        browser: Optional[BrowserOpener] = None,
        cancel_event: Optional[asyncio.Event] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize flow.

        Args:
            on_prompt: Receives the verification URL and user code
            on_open: Notified after the browser was opened
            registry: Registry client (default: from settings)
            store: Where the session is saved (default: FileCredentialStore)
            browser: URL opener (default: system browser)
            cancel_event: Set it to abort polling
            sleep: Coroutine used to wait between polls
            clock: Monotonic time source in seconds
        """
        if registry is None:
            settings = get_settings()
            registry = RegistryClient(
                api_url=settings.api_url, timeout=settings.request_timeout
            )
        self.registry = registry
        self.store = store or FileCredentialStore()
        self.browser = browser or SystemBrowserOpener()
        self.on_prompt = on_prompt
        self.on_open = on_open
        self.cancel_event = cancel_event
        self._sleep = sleep
        self._clock = clock

    async def run(self) -> str:
        """Run the flow to completion.

        Returns:
            Access token (also saved as the current session)

        Raises:
            DeviceCodeExpiredError: Registry reports the code expired
            DeviceCodeConsumedError: Registry reports the code was used
            DeviceAuthServerError: Registry reports an error
            DeviceAuthTimeoutError: Code lifetime elapsed while pending
            DeviceAuthCancelledError: cancel_event was set
            ServiceUnavailableError: Registry could not be reached
        """
        code = await self.registry.request_device_code()
        self.on_prompt(code.verification_url, code.user_code)
        self._open_browser(code)

        started = self._clock()
        while True:
            await self._pause(code.interval)

            poll = await self.registry.poll_device_auth(code.device_code)

            if poll.status == "complete" and poll.access_token:
                self.store.save_session(
                    AuthSession(
                        access_token=poll.access_token,
                        registry_url=self.registry.api_url,
                    )
                )
                logger.info("Device login completed for %s", self.registry.api_url)
                return poll.access_token

            if poll.status == "expired":
                raise DeviceCodeExpiredError("Device code expired. Please try again.")

            if poll.status == "consumed":
                raise DeviceCodeConsumedError(
                    "Device code already used. Please try again."
                )

            if poll.status == "error":
                raise DeviceAuthServerError(poll.error or "Authentication failed")

            if self._clock() - started >= code.expires_in:
                raise DeviceAuthTimeoutError(
                    "Authentication timed out. Please try again."
                )

    def _open_browser(self, code: DeviceCodeResponse) -> None:
        url = str(
            httpx.URL(code.verification_url).copy_add_param("user_code", code.user_code)
        )
        try:
            opened = self.browser.open(url)
        except Exception as e:
            logger.debug("Browser open failed: %s", e)
            return
        if opened and self.on_open is not None:
            self.on_open()

    async def _pause(self, seconds: float) -> None:
        if self.cancel_event is None:
            await self._sleep(seconds)
            return

        if self.cancel_event.is_set():
            raise DeviceAuthCancelledError("Device login cancelled")

        sleeper = asyncio.ensure_future(self._sleep(seconds))
        waiter = asyncio.ensure_future(self.cancel_event.wait())
        try:
            done, _ = await asyncio.wait(
                {sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            # Also runs when run() itself is cancelled mid-wait.
            for task in (sleeper, waiter):
                task.cancel()
            await asyncio.gather(sleeper, waiter, return_exceptions=True)
        if waiter in done:
            raise DeviceAuthCancelledError("Device login cancelled")


async def device_login(
    on_prompt: PromptCallback,
    on_open: Optional[OpenCallback] = None,
    api_url: Optional[str] = None,
    store: Optional[CredentialStore] = None,
    **kwargs: Any,
) -> str:
    """Run the device authorization flow and store the session.

    Extra keyword arguments are passed to DeviceAuthFlow.
    """
    if api_url is not None and "registry" not in kwargs:
        kwargs["registry"] = RegistryClient(
            api_url=api_url, timeout=get_settings().request_timeout
        )
    flow = DeviceAuthFlow(on_prompt=on_prompt, on_open=on_open, store=store, **kwargs)
    return await flow.run()


def get_access_token(
    api_url: Optional[str] = None, store: Optional[CredentialStore] = None
) -> Optional[str]:
    """Stored access token, optionally only if issued by ``api_url``."""
    session = (store or FileCredentialStore()).get_session()
    if session is None:
        return None
    if api_url and session.registry_url != normalize_url(api_url):
        return None
    return session.access_token


def is_logged_in(
    api_url: Optional[str] = None, store: Optional[CredentialStore] = None
) -> bool:
    """Whether a session is stored (for ``api_url`` if given)."""
    return get_access_token(api_url, store) is not None


def logout(store: Optional[CredentialStore] = None) -> bool:
    """Remove the stored session. Returns False if none was stored."""
    return (store or FileCredentialStore()).clear_session()
