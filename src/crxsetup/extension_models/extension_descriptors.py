"""
Pydantic data models for extensions.json.

The registry maps an extension name to its Web Store identifier, the version
it was pinned at, and optionally the directory it should be unpacked into.
"""

import json
import pathlib
import re
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from crxsetup.crxsetup_exceptions import CrxSetupException


DEFAULT_REGISTRY_PATH = str(pathlib.Path(__file__).parent / "extensions.json")

# Web Store ids are 32 characters drawn from a-p
_EXTENSION_ID_PATTERN = re.compile(r"^[a-p]{32}$")


class ExtensionEntry(BaseModel):
    """A single entry of the registry file, before path resolution."""

    id: str = Field(..., description="Web Store extension id")
    version: str = Field(..., description="Version the extension is pinned at")
    path: Optional[str] = Field(None, description="Target directory, relative to the extensions folder")
    description: Optional[str] = Field(None, alias="_description")

    class Config:
        extra = "forbid"
        populate_by_name = True

    @field_validator("id")
    @classmethod
    def check_id(cls, value: str) -> str:
        if not _EXTENSION_ID_PATTERN.match(value):
            raise ValueError(f"'{value}' is not a valid extension id")
        return value


class ExtensionDescriptor(BaseModel):
    """
    Identifies one extension to fetch and where to unpack it.
    """

    name: str
    id: str
    version: str
    path: str

    class Config:
        frozen = True

    @property
    def zip_path(self) -> str:
        """Temporary archive written next to the target directory."""
        return f"{self.path}.zip"


class ExtensionRegistry(BaseModel):
    """
    The complete extensions.json registry.

    Structure:
    {
      "_description": "...",
      "extensions": {
        "name": {"id": "...", "version": "...", "path": "optional/dir"},
        ...
      }
    }
    """

    description: Optional[str] = Field(None, alias="_description")
    extensions: Dict[str, ExtensionEntry] = Field(default_factory=dict)

    class Config:
        extra = "forbid"
        populate_by_name = True

    @classmethod
    def load(cls, registry_path: Optional[str] = None) -> "ExtensionRegistry":
        """
        Load a registry file, the packaged one when no path is given.

        Raises:
            CrxSetupException: If the file cannot be read or does not match the schema
        """
        registry_path = registry_path or DEFAULT_REGISTRY_PATH
        try:
            with open(registry_path, "r") as f:
                data = json.load(f)
            return cls(**data)
        except (OSError, ValueError) as e:
            raise CrxSetupException(
                f"Failed to load extension registry {registry_path}: {str(e)}"
            ) from e

    def get_descriptors(self, extensions_folder: str) -> List[ExtensionDescriptor]:
        """
        Resolve every entry to a descriptor, in registry order.

        Args:
            extensions_folder: Directory that relative target paths are resolved against
        """
        return [
            self._resolve(name, entry, extensions_folder)
            for name, entry in self.extensions.items()
        ]

    def get_descriptor(self, name: str, extensions_folder: str) -> ExtensionDescriptor:
        """
        Resolve a single entry by name.

        Raises:
            CrxSetupException: If the registry has no such extension
        """
        entry = self.extensions.get(name)
        if entry is None:
            available = ", ".join(self.extensions) or "none"
            raise CrxSetupException(
                f"Unknown extension: {name}. Available: {available}"
            )
        return self._resolve(name, entry, extensions_folder)

    @staticmethod
    def _resolve(name: str, entry: ExtensionEntry, extensions_folder: str) -> ExtensionDescriptor:
        target = pathlib.Path(extensions_folder) / (entry.path or name)
        return ExtensionDescriptor(
            name=name,
            id=entry.id,
            version=entry.version,
            path=str(target),
        )
