from __future__ import annotations

import json
from pathlib import Path

import pytest

from macc_core.catalog import (
    Catalog,
    CatalogEntry,
    Source,
    load_catalog,
    load_skills_catalog_with_local,
)
from macc_core.errors import ValidationError
from macc_core.project import ProjectPaths


def _entry(entry_id: str) -> CatalogEntry:
    return CatalogEntry(
        id=entry_id,
        name=entry_id,
        description="",
        tags=("a",),
        subpath=f"skills/{entry_id}",
        source=Source(kind="git", url="https://example.com/r.git", ref="v1"),
    )


def test_missing_file_is_empty_catalog(tmp_path: Path) -> None:
    catalog = load_catalog(tmp_path / "skills.catalog.json", "skills")

    assert catalog.entries == []
    assert catalog.catalog_type == "skills"


def test_save_then_load_preserves_entries(tmp_path: Path) -> None:
    path = tmp_path / "catalog" / "skills.catalog.json"
    catalog = Catalog(catalog_type="skills")
    catalog.upsert(_entry("lint"))

    catalog.save(path)
    loaded = load_catalog(path, "skills")

    assert loaded.entries == [_entry("lint")]
    assert loaded.updated_at == catalog.updated_at
    assert json.loads(path.read_text(encoding="utf-8"))["entries"][0]["selector"] == {
        "subpath": "skills/lint"
    }


def test_upsert_replaces_by_id_and_delete_reports_change() -> None:
    catalog = Catalog(catalog_type="skills", entries=[_entry("lint")])
    replacement = CatalogEntry(
        id="lint",
        name="Lint v2",
        description="",
        tags=(),
        subpath="skills/lint",
        source=_entry("lint").source,
    )

    catalog.upsert(replacement)

    assert catalog.entries == [replacement]
    assert catalog.updated_at.endswith("Z")
    assert catalog.delete("lint") is True
    assert catalog.delete("lint") is False


def test_invalid_source_kind_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "mcp.catalog.json"
    payload = {
        "entries": [
            {
                "id": "x",
                "name": "x",
                "description": "",
                "selector": {"subpath": ""},
                "source": {"kind": "ftp", "url": "ftp://x", "ref": ""},
            }
        ]
    }
    path.write_text(json.dumps(payload), encoding="utf-8")

    with pytest.raises(ValidationError, match="entries\\[0\\].source.kind"):
        load_catalog(path, "mcp")


def test_unparseable_catalog_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "skills.catalog.json"
    path.write_text("{", encoding="utf-8")

    with pytest.raises(ValidationError, match="Failed to parse skills catalog"):
        load_catalog(path, "skills")


def test_local_skills_merge_into_catalog_without_overriding(tmp_path: Path) -> None:
    paths = ProjectPaths(root=tmp_path)
    for name in ("lint", "house"):
        folder = paths.skills_dir / name
        folder.mkdir(parents=True)
        (folder / "README.md").write_text(name, encoding="utf-8")
    (paths.skills_dir / "no-marker").mkdir()
    catalog = Catalog(catalog_type="skills", entries=[_entry("lint")])
    catalog.save(paths.skills_catalog_path)

    merged = load_skills_catalog_with_local(paths)

    assert [entry.id for entry in merged.entries] == ["house", "lint"]
    assert merged.get("lint") == _entry("lint")
    house = merged.get("house")
    assert house is not None
    assert house.source.kind == "local"
    assert house.tags == ("local",)
