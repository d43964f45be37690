"""Read and edit PowerShell module manifests (.psd1) in place."""

from .editor import (
    PSDATA,
    find_manifest,
    read_module_info,
    try_get_required_modules,
    try_get_string,
    try_get_string_array,
    try_set_module_version,
    try_set_required_modules,
    try_set_string,
    try_set_string_array,
)
from .model import (
    ManifestInfo,
    ManifestStructureError,
    RequiredModuleEntry,
    RequiredModuleField,
)
from .parser import ManifestParseError, parse_manifest

__all__ = [
    # editor
    "PSDATA",
    "find_manifest",
    "read_module_info",
    "try_get_required_modules",
    "try_get_string",
    "try_get_string_array",
    "try_set_module_version",
    "try_set_required_modules",
    "try_set_string",
    "try_set_string_array",
    # model
    "ManifestInfo",
    "ManifestStructureError",
    "RequiredModuleEntry",
    "RequiredModuleField",
    # parser
    "ManifestParseError",
    "parse_manifest",
]
