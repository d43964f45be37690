"""Tests for modforge.manifest.parser module."""

from __future__ import annotations

import pytest

from modforge.manifest.parser import (
    ArrayNode,
    ManifestParseError,
    MappingNode,
    ScalarNode,
    StringNode,
    parse_manifest,
)

SAMPLE = """# Module manifest for module 'Sample'
<#
  Generated by hand.
#>
@{
    RootModule        = 'Sample.psm1'
    ModuleVersion     = "1.0.0"  # bumped on release
    FunctionsToExport = @('Get-Thing', 'Set-Thing')
    AliasesToExport   = @()
    CmdletsToExport   = '*'
    Flag = $true; Count = 3
    Created = (Get-Date)
    Version = [version]'1.0'
    PrivateData = @{
        PSData = @{
            Tags = 'a', 'b'
        }
    }
}
"""


def test_sample_bindings() -> None:
    root = parse_manifest(SAMPLE)

    assert [b.key for b in root.bindings] == [
        "RootModule",
        "ModuleVersion",
        "FunctionsToExport",
        "AliasesToExport",
        "CmdletsToExport",
        "Flag",
        "Count",
        "Created",
        "Version",
        "PrivateData",
    ]


def test_lookup_is_case_insensitive() -> None:
    root = parse_manifest(SAMPLE)
    binding = root.get("moduleversion")

    assert binding is not None
    assert isinstance(binding.value, StringNode)
    assert binding.value.value == "1.0.0"
    assert binding.value.quote == "double"


def test_offsets_slice_the_source() -> None:
    root = parse_manifest(SAMPLE)
    binding = root.get("RootModule")

    assert binding is not None
    assert SAMPLE[binding.value.start : binding.value.end] == "'Sample.psm1'"
    assert SAMPLE[binding.start : binding.key_end] == "RootModule"


def test_arrays() -> None:
    root = parse_manifest(SAMPLE)
    funcs = root.get("FunctionsToExport")
    empty = root.get("AliasesToExport")

    assert funcs is not None and isinstance(funcs.value, ArrayNode)
    assert [i.value for i in funcs.value.items if isinstance(i, StringNode)] == ["Get-Thing", "Set-Thing"]
    assert funcs.value.wrapped
    assert empty is not None and isinstance(empty.value, ArrayNode)
    assert empty.value.items == ()


def test_bare_comma_list() -> None:
    root = parse_manifest(SAMPLE)
    private = root.get("PrivateData")
    assert private is not None and isinstance(private.value, MappingNode)
    psdata = private.value.get("PSData")
    assert psdata is not None and isinstance(psdata.value, MappingNode)
    tags = psdata.value.get("Tags")

    assert tags is not None and isinstance(tags.value, ArrayNode)
    assert not tags.value.wrapped
    assert len(tags.value.items) == 2


def test_opaque_values_kept_verbatim() -> None:
    root = parse_manifest(SAMPLE)
    values = {k: root.get(k) for k in ("Flag", "Count", "Created", "Version")}

    texts = {k: b.value.text for k, b in values.items() if b is not None and isinstance(b.value, ScalarNode)}
    assert texts == {
        "Flag": "$true",
        "Count": "3",
        "Created": "(Get-Date)",
        "Version": "[version]'1.0'",
    }


def test_comma_list_inside_array_is_flat() -> None:
    root = parse_manifest("@{ A = @('x', 'y'\n'z') }")
    binding = root.get("A")

    assert binding is not None and isinstance(binding.value, ArrayNode)
    assert len(binding.value.items) == 3


def test_string_escapes() -> None:
    root = parse_manifest("@{ A = 'it''s'; B = \"tab`there\"; C = \"say \"\"hi\"\"\" }")

    def value(key: str) -> str:
        b = root.get(key)
        assert b is not None and isinstance(b.value, StringNode)
        return b.value.value

    assert value("A") == "it's"
    assert value("B") == "tab\there"
    assert value("C") == 'say "hi"'


def test_here_string() -> None:
    root = parse_manifest("@{\n    Notes = @'\nline one\nline two\n'@\n}\n")
    notes = root.get("Notes")

    assert notes is not None and isinstance(notes.value, StringNode)
    assert notes.value.value == "line one\nline two"
    assert notes.value.quote == "here_single"


def test_quoted_keys_and_bom() -> None:
    root = parse_manifest("\ufeff@{ 'My Key' = 'v' }")
    assert root.get("my key") is not None


def test_crlf() -> None:
    root = parse_manifest("@{\r\n    A = 'x'\r\n    B = 'y'\r\n}\r\n")
    assert [b.key for b in root.bindings] == ["A", "B"]


@pytest.mark.parametrize(
    "text",
    [
        "",
        "'not a mapping'",
        "@{ A = 'x' ",
        "@{ A 'x' }",
        "@{ A = 'x' } trailing",
        "@{ A = 'unterminated }",
        "@{ A = @('x' }",
        "<# open comment @{}",
        "@{ A = @'\nno closer\n}",
    ],
)
def test_malformed(text: str) -> None:
    with pytest.raises(ManifestParseError):
        parse_manifest(text)
