"""Successor versions from ``X`` templates.

A template such as ``1.2.X`` names one segment to step. Given the module's
current version it yields the smallest version matching the template that is
strictly greater, so repeated releases always move forward.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from modforge.core.result import Err, Ok, Result
from modforge.manifest.editor import try_get_string
from modforge.versioning.version import Version, parse_version, select_latest

if TYPE_CHECKING:
    from modforge.dependencies.model import ModuleLookup

__all__ = [
    "BaselineSource",
    "StepResult",
    "VersionError",
    "VersionStepper",
    "parse_template",
    "step_version",
]

PLACEHOLDER = "X"
_ZERO = Version(0, 0, 0, 0)


@dataclass(frozen=True, slots=True)
class VersionError:
    kind: Literal["invalid_version", "invalid_template", "template_below_current"]
    message: str
    hint: str | None = None


# A template segment: a literal integer, the placeholder, or absent (tail only).
type _Segment = int | Literal["X"] | None


def parse_template(template: str) -> Result[tuple[_Segment, ...], VersionError]:
    """Split a template into four segments (missing tail segments are None)."""
    text = template.strip()
    parts = text.split(".")
    if not text or len(parts) > 4:
        return Err(
            VersionError(
                kind="invalid_template",
                message=f"invalid version template: {template!r}",
                hint="Expected 2-4 segments, e.g. 1.2.X or 0.1.5.X",
            )
        )

    segs: list[_Segment] = []
    for raw in parts:
        s = raw.strip()
        if s.upper() == PLACEHOLDER:
            segs.append(PLACEHOLDER)
        elif s.isdigit():
            segs.append(int(s))
        elif not s:
            segs.append(None)
        else:
            return Err(
                VersionError(
                    kind="invalid_template",
                    message=f"template segment {raw!r} is not a number",
                    hint=template,
                )
            )

    # An empty segment is only legal as trailing padding (e.g. "1.X.").
    seen_gap = False
    for s in segs:
        if s is None:
            seen_gap = True
        elif seen_gap:
            return Err(
                VersionError(
                    kind="invalid_template",
                    message=f"template has an empty segment before a value: {template!r}",
                )
            )

    placeholders = sum(1 for s in segs if s == PLACEHOLDER)
    if placeholders != 1:
        return Err(
            VersionError(
                kind="invalid_template",
                message=(
                    f"template must contain exactly one '{PLACEHOLDER}' placeholder "
                    f"(or be an exact version): {template!r}"
                ),
            )
        )

    present = sum(1 for s in segs if s is not None)
    if present < 2:
        return Err(
            VersionError(
                kind="invalid_template",
                message=f"template must include at least major and minor: {template!r}",
            )
        )

    while len(segs) < 4:
        segs.append(None)
    return Ok(tuple(segs))


def _build(parts: list[int | None]) -> Version:
    last = max(i for i, p in enumerate(parts) if p is not None)
    major = parts[0] or 0
    minor = parts[1] or 0
    if last <= 1:
        return Version(major, minor)
    build = parts[2] or 0
    if last == 2:
        return Version(major, minor, build)
    return Version(major, minor, build, parts[3] or 0)


def step_version(template: str, baseline: Version | None) -> Result[Version, VersionError]:
    """Compute the smallest version matching ``template`` that exceeds ``baseline``.

    A template that is already an exact version is returned unchanged.
    ``baseline=None`` means the module has no known version yet.
    """
    pinned = parse_version(template)
    if pinned is not None:
        return Ok(pinned)

    parsed = parse_template(template)
    if isinstance(parsed, Err):
        return parsed
    segs = parsed.value

    step_index = segs.index(PLACEHOLDER)
    parts: list[int | None] = [s if isinstance(s, int) else None for s in segs]

    known = baseline is not None and baseline != _ZERO
    floor = baseline if baseline is not None else _ZERO

    prefix = tuple(p or 0 for p in parts[:step_index])
    if prefix < floor.core[:step_index]:
        # No value of the placeholder can climb past a higher fixed prefix.
        return Err(
            VersionError(
                kind="template_below_current",
                message=f"template {template!r} cannot produce a version above {floor}",
                hint="Raise the fixed segments of the template",
            )
        )

    parts[step_index] = floor.part(step_index) if known else 1
    candidate = _build(parts)

    # Unknown modules start at 1 in the stepped segment; known ones restart
    # from 0 whenever the template itself already moved past the baseline.
    if known and candidate > floor:
        parts[step_index] = 0
        candidate = _build(parts)

    while candidate <= floor:
        parts[step_index] = (parts[step_index] or 0) + 1
        candidate = _build(parts)

    return Ok(candidate)


BaselineSource = Literal["none", "local_manifest", "repository"]


@dataclass(frozen=True, slots=True)
class StepResult:
    expected: str
    version: Version
    current_version: Version | None
    source: BaselineSource
    used_auto_versioning: bool


class VersionStepper:
    """Steps a template against the module's current version.

    The current version comes from a local manifest when one is given,
    otherwise from the registry. Exact versions skip the lookup entirely.
    """

    def __init__(self, lookup: ModuleLookup | None = None) -> None:
        self._lookup = lookup

    def step(
        self,
        template: str,
        *,
        module_name: str | None = None,
        local_manifest: Path | None = None,
        repositories: tuple[str, ...] = (),
        prerelease: bool = False,
    ) -> Result[StepResult, VersionError]:
        pinned = parse_version(template)
        if pinned is not None:
            return Ok(
                StepResult(
                    expected=template,
                    version=pinned,
                    current_version=None,
                    source="none",
                    used_auto_versioning=False,
                )
            )

        current, source = self._current_version(
            module_name=module_name,
            local_manifest=local_manifest,
            repositories=repositories,
            prerelease=prerelease,
        )
        stepped = step_version(template, current)
        if isinstance(stepped, Err):
            return stepped

        return Ok(
            StepResult(
                expected=template,
                version=stepped.value,
                current_version=current,
                source=source,
                used_auto_versioning=True,
            )
        )

    def _current_version(
        self,
        *,
        module_name: str | None,
        local_manifest: Path | None,
        repositories: tuple[str, ...],
        prerelease: bool,
    ) -> tuple[Version | None, BaselineSource]:
        if local_manifest is not None:
            raw = try_get_string(local_manifest, "ModuleVersion")
            return (parse_version(raw), "local_manifest")

        if not module_name or self._lookup is None:
            return (None, "none")

        found = self._lookup.find([module_name], repositories=repositories, prerelease=prerelease)
        if isinstance(found, Err):
            return (None, "repository")

        versions = [i.version for i in found.value if i.name.casefold() == module_name.casefold()]
        latest, _ = select_latest(versions, allow_prerelease=prerelease)
        return (parse_version(latest), "repository")

