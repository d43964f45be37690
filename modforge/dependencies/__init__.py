"""Required-module resolution against installed modules and registries."""

from .model import (
    ModuleInfo,
    ModuleLookup,
    RegistryError,
    RegistryItem,
    RequiredModuleDraft,
    ResolutionResult,
)
from .registry import FallbackRegistry, ModuleSources
from .resolver import resolve_required_modules

__all__ = [
    # model
    "ModuleInfo",
    "ModuleLookup",
    "RegistryError",
    "RegistryItem",
    "RequiredModuleDraft",
    "ResolutionResult",
    # registry
    "FallbackRegistry",
    "ModuleSources",
    # resolver
    "resolve_required_modules",
]
