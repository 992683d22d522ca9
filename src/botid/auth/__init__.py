"""Login and session management."""

from .browser import BrowserOpener, NullBrowserOpener, SystemBrowserOpener
from .device import (
    DeviceAuthFlow,
    device_login,
    get_access_token,
    is_logged_in,
    logout,
)

__all__ = [
    "BrowserOpener",
    "NullBrowserOpener",
    "SystemBrowserOpener",
    "DeviceAuthFlow",
    "device_login",
    "get_access_token",
    "is_logged_in",
    "logout",
]
