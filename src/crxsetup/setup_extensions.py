"""
Command line entry point: download and unpack every registered extension.

Usage:
```
python -m crxsetup
python -m crxsetup --config crxsetup.toml --only phantom
```
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

import httpx

from crxsetup.crxsetup_config import CRXSETUP_TOML_SCHEMA, CrxSetupConfig
from crxsetup.crxsetup_exceptions import CrxSetupException
from crxsetup.crxsetup_logger import CrxSetupLogger, configure_logging
from crxsetup.crxsetup_utils import RuntimeContext, VersionProvider, BrowserUtils
from crxsetup.extension_downloader import DownloadSummary, ExtensionDownloader
from crxsetup.extension_models import ExtensionRegistry


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="crxsetup",
        description="Download browser extensions and unpack them for a test browser.",
        epilog=f"Configuration file format:\n{CRXSETUP_TOML_SCHEMA}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-c", "--config", help="Path to a crxsetup.toml file.", type=str)
    parser.add_argument("-e", "--extensions-folder", help="Directory to unpack extensions into.", type=str)
    parser.add_argument(
        "--only",
        help="Only handle the named extension (repeatable).",
        action="append",
        default=[],
    )
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> CrxSetupConfig:
    if args.config:
        config = CrxSetupConfig.from_toml(args.config)
    elif os.path.exists("crxsetup.toml"):
        config = CrxSetupConfig.from_toml("crxsetup.toml")
    else:
        config = CrxSetupConfig()

    if args.extensions_folder:
        config.extensions_folder = os.path.abspath(args.extensions_folder)
    return config


async def run_setup(
    config: CrxSetupConfig,
    logger: CrxSetupLogger,
    only: Optional[List[str]] = None,
    version_provider: VersionProvider = BrowserUtils.get_browser_version,
    client: Optional[httpx.AsyncClient] = None,
) -> DownloadSummary:
    """
    Resolve the registry, detect the runtime context and download everything.
    """
    registry = ExtensionRegistry.load(config.registry_path)
    if only:
        descriptors = [registry.get_descriptor(name, config.extensions_folder) for name in only]
    else:
        descriptors = registry.get_descriptors(config.extensions_folder)

    context = await RuntimeContext.detect(version_provider)
    logger.log(
        f"Using browser version {context.browser_version} on {context.nacl_arch.value}",
        logging.INFO,
    )

    downloader = ExtensionDownloader(config, context, logger, client=client)
    summary = await downloader.download_all(descriptors)

    logger.log(
        f"Download summary: {summary.completed} completed, "
        f"{summary.skipped} skipped, {summary.failed} failed",
        logging.INFO if summary.succeeded else logging.ERROR,
    )
    return summary


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging()
    logger = CrxSetupLogger()

    try:
        config = load_config(args)
        summary = asyncio.run(run_setup(config, logger, only=args.only))
    except CrxSetupException as e:
        logger.log(f"Extension setup failed ({e.kind}): {str(e)}", logging.ERROR)
        return 1

    return 0 if summary.succeeded else 1


if __name__ == "__main__":
    sys.exit(main())
