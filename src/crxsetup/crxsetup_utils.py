"""
This file contains various utility functions like platform detection and
browser version lookup.
"""

import platform
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from playwright.async_api import Error as PlaywrightError, async_playwright

from crxsetup.crxsetup_config import DEFAULT_ACCEPT_FORMAT, DEFAULT_UPDATE_URL
from crxsetup.crxsetup_exceptions import CrxSetupException


class NaclArch(str, Enum):
    """
    Architecture bucket sent to the update service as ``nacl_arch``.
    """

    ARM = "arm"
    X86_32 = "x86-32"
    X86_64 = "x86-64"


class PlatformUtils:
    """
    This class provides utilities for platform detection and identification.
    """

    # Node style names first, then the spellings platform.machine() reports
    _ARCH_BUCKETS = {
        "arm": NaclArch.ARM,
        "arm64": NaclArch.ARM,
        "aarch64": NaclArch.ARM,
        "armv7l": NaclArch.ARM,
        "armv6l": NaclArch.ARM,
        "ia32": NaclArch.X86_32,
        "x32": NaclArch.X86_32,
        "x86": NaclArch.X86_32,
        "i386": NaclArch.X86_32,
        "i686": NaclArch.X86_32,
    }

    @staticmethod
    def get_nacl_arch(machine: Optional[str] = None) -> NaclArch:
        """
        Map a CPU architecture name to its update service bucket. Anything
        that is not ARM or 32-bit x86 is treated as x86-64.

        Args:
            machine: Architecture name, defaults to ``platform.machine()``
        """
        if machine is None:
            machine = platform.machine()
        return PlatformUtils._ARCH_BUCKETS.get(machine.lower(), NaclArch.X86_64)


class BrowserUtils:
    """
    Queries the version of the Chromium build shipped with Playwright.
    """

    @staticmethod
    async def get_browser_version() -> str:
        """
        Launch a headless Chromium, read its version and close it again.
        """
        try:
            async with async_playwright() as p:
                browser = await p.chromium.launch(headless=True)
                try:
                    return browser.version
                finally:
                    await browser.close()
        except PlaywrightError as e:
            raise CrxSetupException(f"Failed to query the browser version: {str(e)}") from e


VersionProvider = Callable[[], Awaitable[str]]


@dataclass(frozen=True)
class RuntimeContext:
    """
    Read-only values shared by every download: the browser version and the
    architecture bucket. Computed once before the first request.
    """

    browser_version: str
    nacl_arch: NaclArch

    @classmethod
    async def detect(
        cls,
        version_provider: VersionProvider = BrowserUtils.get_browser_version,
        machine: Optional[str] = None,
    ) -> "RuntimeContext":
        browser_version = await version_provider()
        return cls(
            browser_version=browser_version,
            nacl_arch=PlatformUtils.get_nacl_arch(machine),
        )


def build_download_url(
    context: RuntimeContext,
    extension_id: str,
    update_url: str = DEFAULT_UPDATE_URL,
    accept_format: str = DEFAULT_ACCEPT_FORMAT,
) -> str:
    """
    Build the update service URL that redirects to the CRX file of an extension.

    The ``x`` parameter is sent pre-encoded.
    """
    return (
        f"{update_url}?response=redirect"
        f"&prodversion={context.browser_version}"
        f"&x=id%3D{extension_id}%26installsource%3Dondemand%26uc"
        f"&nacl_arch={context.nacl_arch.value}"
        f"&acceptformat={accept_format}"
    )
