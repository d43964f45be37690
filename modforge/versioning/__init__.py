"""Four-part version ordering and template stepping."""

from .stepper import StepResult, VersionError, VersionStepper, parse_template, step_version
from .version import Version, compare_versions, parse_version, select_latest

__all__ = [
    # stepper
    "StepResult",
    "VersionError",
    "VersionStepper",
    "parse_template",
    "step_version",
    # version
    "Version",
    "compare_versions",
    "parse_version",
    "select_latest",
]
