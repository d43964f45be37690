"""Default timeouts (seconds) for out-of-process PowerShell calls."""

from __future__ import annotations

REGISTRY_QUERY_TIMEOUT = 120.0
REPOSITORY_REGISTER_TIMEOUT = 120.0
INSTALLED_MODULES_TIMEOUT = 60.0
