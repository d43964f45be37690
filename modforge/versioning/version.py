from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from functools import total_ordering

__all__ = [
    "Version",
    "compare_versions",
    "parse_version",
    "select_latest",
]

_CORE_RE = re.compile(r"^\d+(?:\.\d+){0,3}$")


@total_ordering
@dataclass(frozen=True, slots=True, eq=False)
class Version:
    """A ``major.minor[.build[.revision]][-prerelease]`` module version.

    Unset build/revision compare as 0 but are kept so the version renders
    back exactly as it was written (``1.2`` stays ``1.2``).
    """

    major: int
    minor: int
    build: int | None = None
    revision: int | None = None
    prerelease: str | None = None

    def __post_init__(self) -> None:
        if self.revision is not None and self.build is None:
            raise ValueError("revision requires build")
        for part in (self.major, self.minor, self.build, self.revision):
            if part is not None and part < 0:
                raise ValueError(f"version components must be non-negative: {part}")

    @property
    def core(self) -> tuple[int, int, int, int]:
        return (self.major, self.minor, self.build or 0, self.revision or 0)

    @property
    def is_prerelease(self) -> bool:
        return self.prerelease is not None

    def _key(self) -> tuple[tuple[int, int, int, int], int, str]:
        # Release outranks any prerelease of the same core.
        if self.prerelease is None:
            return (self.core, 1, "")
        return (self.core, 0, self.prerelease.casefold())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def release(self) -> Version:
        """The same version without its prerelease label."""
        return Version(self.major, self.minor, self.build, self.revision)

    def part(self, index: int) -> int:
        """Component by position (0=major .. 3=revision); unset reads as 0."""
        return self.core[index]

    def __str__(self) -> str:
        parts = [self.major, self.minor]
        if self.build is not None:
            parts.append(self.build)
        if self.revision is not None:
            parts.append(self.revision)
        text = ".".join(str(p) for p in parts)
        if self.prerelease is not None:
            text += f"-{self.prerelease}"
        return text


def parse_version(text: str | None) -> Version | None:
    """Parse ``core[-prerelease]``; returns None when the core is not 1-4 integers."""
    if text is None:
        return None
    trimmed = text.strip()
    if not trimmed:
        return None

    core, _, label = trimmed.partition("-")
    core = core.strip()
    if _CORE_RE.match(core) is None:
        return None

    nums = [int(p) for p in core.split(".")]
    pre = label.strip() or None
    return Version(
        major=nums[0],
        minor=nums[1] if len(nums) > 1 else 0,
        build=nums[2] if len(nums) > 2 else None,
        revision=nums[3] if len(nums) > 3 else None,
        prerelease=pre,
    )


def compare_versions(a: Version, b: Version) -> int:
    """Return -1, 0 or 1 as ``a`` sorts before, equal to, or after ``b``."""
    if a == b:
        return 0
    return -1 if a < b else 1


def select_latest(
    candidates: Iterable[str],
    *,
    allow_prerelease: bool,
) -> tuple[str | None, tuple[str, ...]]:
    """Pick the highest version string.

    Returns the original text of the winner (or None) and the strings that
    could not be parsed, which callers report separately.
    """
    best: tuple[Version, str] | None = None
    unparsable: list[str] = []

    for raw in candidates:
        v = parse_version(raw)
        if v is None:
            unparsable.append(raw)
            continue
        if v.is_prerelease and not allow_prerelease:
            continue
        if best is None or v > best[0]:
            best = (v, raw.strip())

    return (best[1] if best is not None else None, tuple(unparsable))
