"""Tests for the condlist compile and parse commands."""

from __future__ import annotations

import json
from pathlib import Path

import jsonschema
import pytest
from click.testing import CliRunner

from condlist.cli import main
from condlist.compiler import CompileError, read_source, split_outputs
from condlist.parser import parse

# Path helpers
_CONTRACTS_DIR = Path(__file__).resolve().parents[1] / "src/condlist/contracts"
_POSITION_MAP_SCHEMA_PATH = _CONTRACTS_DIR / "PositionMap.v1.json"
_DOCUMENT_SCHEMA_PATH = _CONTRACTS_DIR / "Document.v1.json"

_EXPECTED_LUA = (
    'if xr_conditions.A("a1","a2") and not xr_conditions.B() and db.actor:has_info("C")'
    ' and not db.actor:has_info("D") and math.random(1, 100) > 30 then\n'
    '    xr_effects.E("e1")\n'
    '    db.actor:give_info_portion("F")\n'
    '    db.actor:disable_info_portion("G")\n'
    '    return "X"\n'
    "end\n"
    "\n"
    'return "Y"\n'
)


# ---------------------------------------------------------------------------
# Test 1 — Valid source compiles to the expected Lua and position map
# ---------------------------------------------------------------------------

def test_compile_valid_source(source_file, tmp_path):
    """A well-formed source compiles; the map conforms to PositionMap.v1.json."""
    runner = CliRunner()
    out = tmp_path / "dialog.script"
    map_out = tmp_path / "dialog.map.json"
    result = runner.invoke(
        main,
        [
            "compile",
            "--source", str(source_file()),
            "--out",    str(out),
            "--map",    str(map_out),
        ],
    )
    assert result.exit_code == 0, f"compile failed: {result.output}"
    assert out.read_text(encoding="utf-8") == _EXPECTED_LUA

    data = json.loads(map_out.read_text(encoding="utf-8"))
    schema = json.loads(_POSITION_MAP_SCHEMA_PATH.read_text(encoding="utf-8"))
    jsonschema.validate(data, schema)
    assert data["entries"][-1] == {"start": 0, "length": len(_EXPECTED_LUA), "tag": "document"}


# ---------------------------------------------------------------------------
# Test 2 — Output is byte-identical across two runs (deterministic)
# ---------------------------------------------------------------------------

def test_compile_deterministic(source_file, tmp_path):
    """Compiling the same source twice produces byte-identical outputs."""
    runner = CliRunner()
    source = source_file()
    outs = []
    for n in (1, 2):
        out = tmp_path / f"out{n}.script"
        map_out = tmp_path / f"out{n}.json"
        result = runner.invoke(
            main,
            ["compile", "--source", str(source), "--out", str(out), "--map", str(map_out)],
        )
        assert result.exit_code == 0
        outs.append((out.read_bytes(), map_out.read_bytes()))

    assert outs[0] == outs[1], "Outputs are not byte-identical"


# ---------------------------------------------------------------------------
# Test 3 — Parse errors → exit 1, no output file
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("content,fragment", [
    ("{{",    "group opened while another group is open"),
    ("}",     "'}' without an open condition"),
    ("{~a}",  "probability accepts digits only"),
    ("+a X",  "block outside of a condition or effect group"),
])
def test_compile_parse_error(source_file, tmp_path, content, fragment):
    """Malformed notation fails with exit code 1 and an ERROR line."""
    runner = CliRunner()
    out = tmp_path / "dialog.script"
    result = runner.invoke(
        main, ["compile", "--source", str(source_file(content)), "--out", str(out)]
    )
    assert result.exit_code == 1
    assert "ERROR" in result.stderr
    assert fragment in result.stderr
    assert not out.exists(), "Output file must not be written on failure"


# ---------------------------------------------------------------------------
# Test 4 — Custom naming policy
# ---------------------------------------------------------------------------

def test_compile_with_naming_policy(source_file, naming_file, naming_dict, tmp_path):
    """A valid --naming file replaces the built-in templates."""
    policy = {**naming_dict, "fact_check": "has_fact({key})"}
    runner = CliRunner()
    out = tmp_path / "dialog.script"
    result = runner.invoke(
        main,
        [
            "compile",
            "--source", str(source_file("{+met} Hi")),
            "--out",    str(out),
            "--naming", str(naming_file(policy)),
        ],
    )
    assert result.exit_code == 0, f"compile failed: {result.output}"
    assert out.read_text(encoding="utf-8") == 'if has_fact("met") then\n    return "Hi"\nend\n'


@pytest.mark.parametrize("field,template", [
    ("effect_call",       "xr_effects.{name}"),
    ("fact_check",        "has({key!z})"),
    ("probability_check", "r() > {value:{key}}"),
])
def test_compile_invalid_naming_policy(source_file, naming_file, naming_dict, tmp_path, field, template):
    """A naming policy with a broken template fails before anything is written."""
    policy = {**naming_dict, field: template}
    runner = CliRunner()
    out = tmp_path / "dialog.script"
    result = runner.invoke(
        main,
        [
            "compile",
            "--source", str(source_file()),
            "--out",    str(out),
            "--naming", str(naming_file(policy)),
        ],
    )
    assert result.exit_code == 1
    assert result.stderr.startswith("ERROR: invalid naming policy")
    assert not out.exists()


# ---------------------------------------------------------------------------
# Test 5 — Interrupted output emits a warning but still succeeds
# ---------------------------------------------------------------------------

def test_compile_split_output_warns(source_file, tmp_path):
    """Whitespace inside output text is reported, not corrected."""
    runner = CliRunner()
    out = tmp_path / "dialog.script"
    result = runner.invoke(
        main, ["compile", "--source", str(source_file("Hello there")), "--out", str(out)]
    )
    assert result.exit_code == 0
    assert "WARNING" in result.stderr
    assert "'Hello ther'" in result.stderr
    assert out.read_text(encoding="utf-8") == 'return "Hello ther"\n'


# ---------------------------------------------------------------------------
# Test 6 — Trailing newline of the source file is not part of the output
# ---------------------------------------------------------------------------

def test_compile_ignores_trailing_newline(source_file, tmp_path):
    runner = CliRunner()
    out = tmp_path / "dialog.script"
    result = runner.invoke(
        main, ["compile", "--source", str(source_file("X, Y\n")), "--out", str(out)]
    )
    assert result.exit_code == 0
    assert out.read_text(encoding="utf-8") == 'return "X"\n\nreturn "Y"\n'
    assert "WARNING" not in result.stderr


def test_compile_multiline_source_keeps_strings_closed(source_file, tmp_path):
    """Line breaks inside a source become escapes, never raw newlines in a string."""
    runner = CliRunner()
    out = tmp_path / "dialog.script"
    result = runner.invoke(
        main, ["compile", "--source", str(source_file("X,\nY\n")), "--out", str(out)]
    )
    assert result.exit_code == 0
    assert out.read_text(encoding="utf-8") == 'return "X"\n\nreturn "\\nY"\n'


# ---------------------------------------------------------------------------
# Test 7 — parse command dumps the document
# ---------------------------------------------------------------------------

def test_parse_to_stdout(source_file):
    runner = CliRunner()
    result = runner.invoke(main, ["parse", "--source", str(source_file())])
    assert result.exit_code == 0, f"parse failed: {result.output}"

    data = json.loads(result.stdout)
    schema = json.loads(_DOCUMENT_SCHEMA_PATH.read_text(encoding="utf-8"))
    jsonschema.validate(data, schema)
    assert len(data["statements"]) == 2
    first = data["statements"][0]
    assert [b["kind"] for b in first["condition"]] == [
        "call", "call", "info_toggle", "info_toggle", "probability",
    ]
    assert [a["text"] for a in first["condition"][0]["args"]] == ["a1", "a2"]
    assert first["output"]["text"] == "X"
    assert data["statements"][1]["condition"] is None


def test_parse_to_file(source_file, tmp_path):
    runner = CliRunner()
    out = tmp_path / "doc.json"
    result = runner.invoke(main, ["parse", "--source", str(source_file("{} X")), "--out", str(out)])
    assert result.exit_code == 0
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["statements"][0]["condition"] == []
    assert data["statements"][0]["effects"] is None


def test_parse_error(source_file):
    runner = CliRunner()
    result = runner.invoke(main, ["parse", "--source", str(source_file("{=f(a)b}"))])
    assert result.exit_code == 1
    assert "call argument list is already closed" in result.stderr


# ---------------------------------------------------------------------------
# Library helpers
# ---------------------------------------------------------------------------

def test_read_source_rejects_invalid_utf8(tmp_path):
    p = tmp_path / "latin1.cl"
    p.write_bytes(b"caf\xe9")
    with pytest.raises(CompileError, match="UTF-8"):
        read_source(str(p))


def test_read_source_strips_crlf(tmp_path):
    p = tmp_path / "crlf.cl"
    p.write_bytes(b"X, Y\r\n")
    assert read_source(str(p)) == "X, Y"


def test_split_outputs():
    doc = parse("ab cd, ok, {+a}")
    assert [doc.resolve(s) for s in split_outputs(doc)] == ["ab c"]
