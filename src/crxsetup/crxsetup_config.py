"""
Configuration parameters for crxsetup.
"""

import os
import pathlib
from dataclasses import dataclass, asdict, field
from typing import Any, Dict, Optional

try:
    import tomllib
except ModuleNotFoundError:
    # Python < 3.11
    import tomli as tomllib

from crxsetup.crxsetup_exceptions import CrxSetupException


DEFAULT_UPDATE_URL = "https://clients2.google.com/service/update2/crx"
DEFAULT_ACCEPT_FORMAT = "crx2,crx3"


def default_extensions_folder() -> str:
    """The ``extensions`` directory under the current working directory."""
    return str(pathlib.Path.cwd() / "extensions")


CRXSETUP_TOML_SCHEMA = """
# crxsetup configuration

[crxsetup]
# Directory the extensions are unpacked into, one sub-directory per extension
extensions_folder = "./extensions"

# Update service the CRX files are requested from
# update_url = "https://clients2.google.com/service/update2/crx"

# Container formats the update service may answer with
# accept_format = "crx2,crx3"

# Keep the intermediate <extension>.zip next to the unpacked directory
# keep_archive = false

# Alternative extensions.json registry (defaults to the packaged one)
# registry_path = "/path/to/extensions.json"
"""


@dataclass
class CrxSetupConfig:
    """
    Configuration parameters
    """

    extensions_folder: str = field(default_factory=default_extensions_folder)
    update_url: str = DEFAULT_UPDATE_URL
    accept_format: str = DEFAULT_ACCEPT_FORMAT
    keep_archive: bool = False
    registry_path: Optional[str] = None

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "CrxSetupConfig":
        """
        Create a CrxSetupConfig from a dictionary, usually the ``[crxsetup]``
        table of a TOML file.

        Raises:
            CrxSetupException: If an unknown key or a wrongly typed value is present
        """
        known = {f for f in cls.__dataclass_fields__}
        unknown = set(config_dict) - known
        if unknown:
            raise CrxSetupException(
                f"Unknown crxsetup configuration keys: {', '.join(sorted(unknown))}"
            )

        if "keep_archive" in config_dict and not isinstance(config_dict["keep_archive"], bool):
            raise CrxSetupException("'keep_archive' must be a boolean")

        for key in ("extensions_folder", "update_url", "accept_format", "registry_path"):
            value = config_dict.get(key)
            if value is not None and not isinstance(value, str):
                raise CrxSetupException(f"'{key}' must be a string")

        return cls(**config_dict)

    @classmethod
    def from_toml(cls, toml_path: str) -> "CrxSetupConfig":
        """
        Load the configuration from a TOML file. Relative ``extensions_folder``
        and ``registry_path`` values are resolved against the file's directory.
        """
        with open(toml_path, "rb") as f:
            toml_dict = tomllib.load(f)

        section = toml_dict.get("crxsetup", {})
        if not isinstance(section, dict):
            raise CrxSetupException("[crxsetup] must be a table")

        config = cls.from_dict(section)
        base_dir = os.path.dirname(os.path.abspath(toml_path))
        if "extensions_folder" in section:
            config.extensions_folder = os.path.join(base_dir, config.extensions_folder)
        if config.registry_path is not None:
            config.registry_path = os.path.join(base_dir, config.registry_path)
        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert CrxSetupConfig to dictionary representation."""
        return asdict(self)
