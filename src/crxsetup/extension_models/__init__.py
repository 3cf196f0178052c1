"""
Extension descriptor models.

This package provides Pydantic data models for the static registry of
browser extensions to fetch, and resolves each entry to the directory it is
unpacked into.
"""

from .extension_descriptors import (
    DEFAULT_REGISTRY_PATH,
    ExtensionDescriptor,
    ExtensionEntry,
    ExtensionRegistry,
)

__all__ = [
    "DEFAULT_REGISTRY_PATH",
    "ExtensionDescriptor",
    "ExtensionEntry",
    "ExtensionRegistry",
]
