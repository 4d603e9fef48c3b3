"""Shared pytest fixtures for condlist tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from condlist.naming import DEFAULT_NAMING

COMPLEX_SOURCE = "{=A(a1:a2) !B +C -D ~30} X %=E(e1) +F -G%, Y"


@pytest.fixture()
def naming_dict() -> dict:
    """A fully valid NamingPolicy dict (the built-in templates)."""
    return DEFAULT_NAMING.to_dict()


@pytest.fixture()
def source_file(tmp_path: Path):
    """Factory fixture: write notation text to a uniquely-named temp file, return the Path."""
    counter = {"n": 0}

    def _make(content: str = COMPLEX_SOURCE) -> Path:
        counter["n"] += 1
        p = tmp_path / f"source_{counter['n']}.cl"
        p.write_text(content, encoding="utf-8")
        return p

    return _make


@pytest.fixture()
def naming_file(tmp_path: Path):
    """Factory fixture: write a dict to a uniquely-named temp JSON file, return the Path."""
    counter = {"n": 0}

    def _make(data: dict) -> Path:
        counter["n"] += 1
        p = tmp_path / f"naming_{counter['n']}.json"
        p.write_text(json.dumps(data), encoding="utf-8")
        return p

    return _make
