"""
Tests for architecture buckets, runtime context detection and URL building.
"""

from contextlib import asynccontextmanager

import pytest
from playwright.async_api import Error as PlaywrightError

from crxsetup import crxsetup_utils
from crxsetup.crxsetup_exceptions import CrxSetupException
from crxsetup.crxsetup_utils import (
    BrowserUtils,
    NaclArch,
    PlatformUtils,
    RuntimeContext,
    build_download_url,
)

pytest_plugins = ("pytest_asyncio",)


class TestNaclArch:
    @pytest.mark.parametrize(
        "machine, expected",
        [
            ("arm", NaclArch.ARM),
            ("arm64", NaclArch.ARM),
            ("ia32", NaclArch.X86_32),
            ("x32", NaclArch.X86_32),
            ("x64", NaclArch.X86_64),
            ("mips", NaclArch.X86_64),
            ("", NaclArch.X86_64),
        ],
    )
    def test_node_architecture_names(self, machine, expected):
        """Test the Node style architecture names."""
        assert PlatformUtils.get_nacl_arch(machine) == expected

    @pytest.mark.parametrize(
        "machine, expected",
        [
            ("aarch64", NaclArch.ARM),
            ("armv7l", NaclArch.ARM),
            ("i686", NaclArch.X86_32),
            ("x86", NaclArch.X86_32),
            ("x86_64", NaclArch.X86_64),
            ("AMD64", NaclArch.X86_64),
        ],
    )
    def test_platform_machine_names(self, machine, expected):
        """Test the names reported by platform.machine()."""
        assert PlatformUtils.get_nacl_arch(machine) == expected

    def test_defaults_to_host(self):
        """Test that the host architecture maps to a bucket."""
        assert PlatformUtils.get_nacl_arch() in set(NaclArch)

    def test_bucket_values(self):
        """Test the values sent as nacl_arch."""
        assert [arch.value for arch in NaclArch] == ["arm", "x86-32", "x86-64"]


class TestRuntimeContext:
    @pytest.mark.asyncio
    async def test_detect_uses_injected_version_provider(self):
        """Test that detect queries the version provider exactly once."""
        calls = []

        async def fake_version():
            calls.append(1)
            return "131.0.6778.33"

        context = await RuntimeContext.detect(fake_version, machine="arm64")

        assert context == RuntimeContext("131.0.6778.33", NaclArch.ARM)
        assert len(calls) == 1

    def test_context_is_read_only(self):
        """Test that the runtime context cannot be modified."""
        context = RuntimeContext("1.0", NaclArch.X86_64)

        with pytest.raises(AttributeError):
            context.browser_version = "2.0"



class FakeBrowser:
    """Stands in for a Playwright browser and records whether it was closed."""

    def __init__(self, version="131.0.6778.33", version_error=None):
        self._version = version
        self._version_error = version_error
        self.closed = False

    @property
    def version(self):
        if self._version_error is not None:
            raise self._version_error
        return self._version

    async def close(self):
        self.closed = True


class FakeChromium:
    def __init__(self, browser=None, launch_error=None):
        self.browser = browser
        self.launch_error = launch_error
        self.launch_kwargs = None

    async def launch(self, **kwargs):
        self.launch_kwargs = kwargs
        if self.launch_error is not None:
            raise self.launch_error
        return self.browser


def install_fake_playwright(monkeypatch, chromium):
    class FakePlaywright:
        pass

    playwright = FakePlaywright()
    playwright.chromium = chromium

    @asynccontextmanager
    async def fake_async_playwright():
        yield playwright

    monkeypatch.setattr(crxsetup_utils, "async_playwright", fake_async_playwright)


class TestBrowserUtils:
    """Tests for reading the version from a short-lived headless browser."""

    @pytest.mark.asyncio
    async def test_browser_is_closed_after_reading_version(self, monkeypatch):
        """Test that the browser is closed after its version is read."""
        browser = FakeBrowser(version="120.0.6099.28")
        chromium = FakeChromium(browser)
        install_fake_playwright(monkeypatch, chromium)

        version = await BrowserUtils.get_browser_version()

        assert version == "120.0.6099.28"
        assert browser.closed
        assert chromium.launch_kwargs == {"headless": True}

    @pytest.mark.asyncio
    async def test_browser_is_closed_when_version_fails(self, monkeypatch):
        """Test that the browser is closed when reading the version raises."""
        browser = FakeBrowser(version_error=RuntimeError("browser crashed"))
        install_fake_playwright(monkeypatch, FakeChromium(browser))

        with pytest.raises(RuntimeError, match="browser crashed"):
            await BrowserUtils.get_browser_version()

        assert browser.closed

    @pytest.mark.asyncio
    async def test_playwright_error_while_reading_version(self, monkeypatch):
        """Test that a Playwright error is wrapped and the browser still closed."""
        browser = FakeBrowser(version_error=PlaywrightError("Target closed"))
        install_fake_playwright(monkeypatch, FakeChromium(browser))

        with pytest.raises(CrxSetupException, match="Target closed"):
            await BrowserUtils.get_browser_version()

        assert browser.closed

    @pytest.mark.asyncio
    async def test_launch_failure_becomes_crxsetup_exception(self, monkeypatch):
        """Test that a failed browser launch is wrapped in CrxSetupException."""
        install_fake_playwright(
            monkeypatch, FakeChromium(launch_error=PlaywrightError("Executable doesn't exist"))
        )

        with pytest.raises(CrxSetupException, match="Failed to query the browser version"):
            await BrowserUtils.get_browser_version()

    @pytest.mark.asyncio
    async def test_detect_closes_browser_before_returning(self, monkeypatch):
        """Test that detect closes the browser before returning the context."""
        browser = FakeBrowser(version="131.0.6778.33")
        install_fake_playwright(monkeypatch, FakeChromium(browser))

        context = await RuntimeContext.detect(machine="x86_64")

        assert context == RuntimeContext("131.0.6778.33", NaclArch.X86_64)
        assert browser.closed


def test_build_download_url():
    """Test the update service URL for the default settings."""
    context = RuntimeContext("131.0.6778.33", NaclArch.X86_64)

    url = build_download_url(context, "bfnaelmomeimhlpmgjnjophhpkkoljpa")

    assert url == (
        "https://clients2.google.com/service/update2/crx?response=redirect"
        "&prodversion=131.0.6778.33"
        "&x=id%3Dbfnaelmomeimhlpmgjnjophhpkkoljpa%26installsource%3Dondemand%26uc"
        "&nacl_arch=x86-64"
        "&acceptformat=crx2,crx3"
    )


def test_build_download_url_overrides():
    """Test the update service URL with a custom service and format."""
    context = RuntimeContext("120.0", NaclArch.ARM)

    url = build_download_url(
        context,
        "aflkmfhebedbjioipglgcbcmnbpgliof",
        update_url="https://updates.example.test/crx",
        accept_format="crx3",
    )

    assert url.startswith("https://updates.example.test/crx?response=redirect&")
    assert url.endswith("&nacl_arch=arm&acceptformat=crx3")
