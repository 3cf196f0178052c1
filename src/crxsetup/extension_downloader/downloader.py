"""
Extension downloader implementation.

Fetches CRX files from the update service, strips the container header and
unpacks the embedded ZIP archive into each extension's directory.
"""

import asyncio
import logging
import os
import pathlib
import shutil
import zipfile
from typing import Iterable, List, Optional

import httpx

from crxsetup.container_format import has_crx_magic, locate_payload
from crxsetup.crxsetup_config import CrxSetupConfig
from crxsetup.crxsetup_exceptions import (
    CrxSetupException,
    FilesystemError,
    NetworkError,
)
from crxsetup.crxsetup_logger import CrxSetupLogger
from crxsetup.crxsetup_utils import RuntimeContext, build_download_url
from crxsetup.extension_models import ExtensionDescriptor


class DownloadStatus:
    """Enumeration of download outcomes."""

    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


class DownloadResult:
    """
    Outcome of one extension's download.
    """

    def __init__(
            self,
            name: str,
            status: str,
            path: Optional[str] = None,
            error_kind: Optional[str] = None,
            error_message: Optional[str] = None,
    ):
        self.name = name
        self.status = status
        self.path = path
        self.error_kind = error_kind
        self.error_message = error_message

    @property
    def succeeded(self) -> bool:
        return self.status != DownloadStatus.FAILED

    def __repr__(self) -> str:
        return (
            f"DownloadResult(name={self.name}, status={self.status}, "
            f"error_kind={self.error_kind})"
        )


class DownloadSummary:
    """
    Per-extension results of a download run, in the order they were requested.
    """

    def __init__(self, results: List[DownloadResult]):
        self.results = results

    def _count(self, status: str) -> int:
        return sum(1 for result in self.results if result.status == status)

    @property
    def completed(self) -> int:
        return self._count(DownloadStatus.COMPLETED)

    @property
    def skipped(self) -> int:
        return self._count(DownloadStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(DownloadStatus.FAILED)

    @property
    def succeeded(self) -> bool:
        return self.failed == 0

    def get_failed(self) -> List[DownloadResult]:
        return [r for r in self.results if r.status == DownloadStatus.FAILED]

    def to_dict(self) -> dict:
        return {
            "completed": self.completed,
            "skipped": self.skipped,
            "failed": self.failed,
            "total": len(self.results),
        }

    def __repr__(self) -> str:
        return f"DownloadSummary({self.to_dict()})"


class ExtensionDownloader:
    """
    Downloads and unpacks browser extensions.

    Every extension is handled by its own task. A failure is logged and
    recorded against that extension only; the other tasks keep running.
    """

    def __init__(
        self,
        config: CrxSetupConfig,
        context: RuntimeContext,
        logger: CrxSetupLogger,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the extension downloader.

        Args:
            config: Update service and filesystem settings
            context: Browser version and architecture shared by every request
            logger: Logger for progress and error messages
            client: HTTP client to use, one is created per run when omitted
        """
        self.config = config
        self.context = context
        self.logger = logger
        self.client = client

    async def download_all(self, descriptors: Iterable[ExtensionDescriptor]) -> DownloadSummary:
        """
        Ensure every extension is unpacked, running all of them concurrently.

        Raises:
            FilesystemError: If the extensions folder cannot be created
        """
        descriptors = list(descriptors)

        try:
            os.makedirs(self.config.extensions_folder, exist_ok=True)
        except OSError as e:
            raise FilesystemError(
                f"Failed to create extensions folder {self.config.extensions_folder}: {str(e)}"
            ) from e

        if not descriptors:
            self.logger.log("No extensions to download", logging.INFO)
            return DownloadSummary([])

        owns_client = self.client is None
        if owns_client:
            self.client = httpx.AsyncClient(follow_redirects=True, timeout=None)

        try:
            outcomes = await asyncio.gather(
                *(self.ensure_extension(descriptor) for descriptor in descriptors),
                return_exceptions=True,
            )
        finally:
            if owns_client:
                await self.client.aclose()
                self.client = None

        results = [
            self._to_result(descriptor, outcome)
            for descriptor, outcome in zip(descriptors, outcomes)
        ]
        return DownloadSummary(results)

    def _to_result(self, descriptor: ExtensionDescriptor, outcome) -> DownloadResult:
        if not isinstance(outcome, BaseException):
            return DownloadResult(descriptor.name, outcome, path=descriptor.path)

        # Cancellation and interpreter exits are not per-extension failures
        if not isinstance(outcome, Exception):
            raise outcome

        error_kind = outcome.kind if isinstance(outcome, CrxSetupException) else type(outcome).__name__
        self.logger.log(
            f"Failed to download extension ({error_kind}): {str(outcome)}",
            logging.ERROR,
            extension=descriptor.name,
        )
        return DownloadResult(
            descriptor.name,
            DownloadStatus.FAILED,
            error_kind=error_kind,
            error_message=str(outcome),
        )

    async def ensure_extension(self, descriptor: ExtensionDescriptor) -> str:
        """
        Download and unpack one extension unless its directory already exists.

        An existing directory is never compared against the pinned version.

        Returns:
            DownloadStatus.SKIPPED or DownloadStatus.COMPLETED

        Raises:
            NetworkError: If the request fails or returns a non-success status
            MalformedContainer: If the response is not a usable CRX container
            FilesystemError: If writing or extracting the archive fails
        """
        if os.path.isdir(descriptor.path):
            self.logger.log(
                "Extension has already been downloaded",
                logging.INFO,
                extension=descriptor.name,
            )
            return DownloadStatus.SKIPPED

        self.logger.log(
            f"Downloading extension with id {descriptor.id}",
            logging.INFO,
            extension=descriptor.name,
        )

        url = build_download_url(
            self.context,
            descriptor.id,
            update_url=self.config.update_url,
            accept_format=self.config.accept_format,
        )
        container = await self._fetch(url)

        if not has_crx_magic(container):
            self.logger.log(
                "Response does not start with the CRX magic number",
                logging.WARNING,
                extension=descriptor.name,
            )
        payload = locate_payload(container)

        await asyncio.to_thread(self._write_and_extract, descriptor, payload)

        self.logger.log(
            f"Successfully unpacked extension to {descriptor.path}",
            logging.INFO,
            extension=descriptor.name,
        )
        return DownloadStatus.COMPLETED

    async def _fetch(self, url: str) -> bytes:
        try:
            if self.client is None:
                async with httpx.AsyncClient(follow_redirects=True, timeout=None) as client:
                    response = await client.get(url)
            else:
                response = await self.client.get(url, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise NetworkError(f"Failed to fetch {url}: {str(e)}") from e
        return response.content

    def _write_and_extract(self, descriptor: ExtensionDescriptor, payload: memoryview) -> None:
        zip_path = descriptor.zip_path

        try:
            pathlib.Path(zip_path).parent.mkdir(parents=True, exist_ok=True)
            with open(zip_path, "wb") as f:
                f.write(payload)
        except OSError as e:
            raise FilesystemError(f"Failed to write {zip_path}: {str(e)}") from e

        # A partly extracted directory would be taken as installed on the next run
        try:
            FileUtils.extract_zip(zip_path, descriptor.path)
        except FilesystemError:
            shutil.rmtree(descriptor.path, ignore_errors=True)
            raise
        except Exception as e:
            shutil.rmtree(descriptor.path, ignore_errors=True)
            raise FilesystemError(f"Failed to extract {zip_path}: {str(e)}") from e

        if not self.config.keep_archive:
            try:
                os.remove(zip_path)
            except OSError as e:
                raise FilesystemError(f"Failed to remove {zip_path}: {str(e)}") from e


class FileUtils:
    """
    Archive helpers.
    """

    @staticmethod
    def extract_zip(zip_path: str, target_dir: str) -> None:
        """
        Extract a ZIP file into ``target_dir``, creating it as needed.

        Raises:
            FilesystemError: If a member would be written outside ``target_dir``
        """
        target = pathlib.Path(target_dir).resolve()
        with zipfile.ZipFile(zip_path) as zf:
            for member in zf.namelist():
                dest = (target / member).resolve()
                if dest != target and target not in dest.parents:
                    raise FilesystemError(f"Archive member escapes {target_dir}: {member}")
            os.makedirs(target, exist_ok=True)
            zf.extractall(target)
