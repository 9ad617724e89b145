import json

import pytest

from blocks import KnownName, NameKind
from names import BUILTIN_NAMES, KnownNameError, KnownNames, build_known_names, load_known_names


def test_build_known_names_orders_globals_locals_builtins_sprites():
    names = build_known_names(
        global_variables=[{"name": "Score", "id": "g-score"}],
        local_variables=["speed"],
        sprites=[KnownName(name="Cat", id="sprite-cat", kind=NameKind.SPRITE)],
    )

    kinds = [entry.kind for entry in names]
    assert kinds[0] is NameKind.GLOBAL_VARIABLE
    assert kinds[1] is NameKind.LOCAL_VARIABLE
    assert kinds[-1] is NameKind.SPRITE
    assert len(names) == 3 + len(BUILTIN_NAMES)
    assert names.lookup("Score").id == "g-score"
    assert names.lookup("speed").id == "speed"
    assert "Cat" in names


def test_first_entry_wins_on_duplicate_names():
    names = build_known_names(
        global_variables=[{"name": "size", "id": "g-size"}],
        local_variables=[{"name": "size", "id": "l-size"}],
    )

    entry = names.lookup("size")
    assert entry.id == "g-size"
    assert entry.kind is NameKind.GLOBAL_VARIABLE


def test_builtins_can_be_left_out():
    names = build_known_names(include_builtins=False)

    assert len(names) == 0
    assert names.lookup("x position") is None
    assert build_known_names().lookup("x position").kind is NameKind.BUILTIN


def test_entry_without_a_name_is_rejected():
    with pytest.raises(KnownNameError, match="has no name"):
        build_known_names(global_variables=[{"id": "x"}])
    with pytest.raises(KnownNameError, match="Unsupported"):
        build_known_names(sprites=[42])


def test_load_known_names_reads_json(tmp_path):
    path = tmp_path / "names.json"
    path.write_text(
        json.dumps(
            {
                "globals": [{"name": "Score", "id": "var-1"}],
                "locals": [{"name": "lives"}],
                "sprites": [{"name": "Cat", "id": "Cat"}],
            }
        ),
        encoding="utf-8",
    )

    names = load_known_names(path)

    assert isinstance(names, KnownNames)
    assert names.lookup("Score").id == "var-1"
    assert names.lookup("lives").kind is NameKind.LOCAL_VARIABLE
    assert names.lookup("Cat").kind is NameKind.SPRITE


def test_load_known_names_rejects_bad_files(tmp_path):
    with pytest.raises(KnownNameError, match="not found"):
        load_known_names(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(KnownNameError, match="not valid JSON"):
        load_known_names(broken)

    extra = tmp_path / "extra.json"
    extra.write_text(json.dumps({"globals": [], "lists": []}), encoding="utf-8")
    with pytest.raises(KnownNameError, match="unknown section"):
        load_known_names(extra)

    wrong = tmp_path / "wrong.json"
    wrong.write_text(json.dumps({"globals": "Score"}), encoding="utf-8")
    with pytest.raises(KnownNameError, match="must be a list"):
        load_known_names(wrong)
