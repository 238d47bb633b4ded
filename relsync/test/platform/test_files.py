from pathlib import Path

import pytest

from relsync.platform.files import atomic_write_json, atomic_write_text


def test_atomic_write_creates_parents(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "releases.json"
    atomic_write_text(target, "{}\n")
    assert target.read_text(encoding="utf-8") == "{}\n"


def test_atomic_write_replaces_and_leaves_no_temp_files(tmp_path: Path) -> None:
    target = tmp_path / "releases.json"
    target.write_text("old", encoding="utf-8")

    atomic_write_text(target, "new")

    assert target.read_text(encoding="utf-8") == "new"
    assert [p.name for p in tmp_path.iterdir()] == ["releases.json"]


def test_atomic_write_json_is_indented_and_newline_terminated(tmp_path: Path) -> None:
    target = tmp_path / "releases.json"
    atomic_write_json(target, {"stable": {}})
    assert target.read_text(encoding="utf-8") == '{\n    "stable": {}\n}\n'


def test_atomic_write_json_unserializable_keeps_old_file(tmp_path: Path) -> None:
    target = tmp_path / "releases.json"
    target.write_text("old", encoding="utf-8")

    with pytest.raises(TypeError):
        atomic_write_json(target, {"bad": object()})

    assert target.read_text(encoding="utf-8") == "old"
    assert [p.name for p in tmp_path.iterdir()] == ["releases.json"]
