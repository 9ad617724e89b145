import json
import textwrap

import pytest

import compiler
from blocks import random_id_source
from codegen import generate_scripts_json, script_to_dict
from compiler import compile_file, compile_source
from names import build_known_names

SOURCE = textwrap.dedent(
    """
    when green flag clicked
    go to (random position v)
    forever
      if <touching (edge v)?> then
        turn right (180) degrees
      end
      move (speed * 2) steps
    end
    """
)


def test_compilation_is_deterministic():
    first = json.dumps(generate_scripts_json(compile_source(SOURCE)))
    second = json.dumps(generate_scripts_json(compile_source(SOURCE)))

    assert first == second


def test_script_json_follows_the_editor_block_shape():
    names = build_known_names(local_variables=[{"name": "speed", "id": "var-speed"}])
    (script,) = compile_source(SOURCE, names)

    data = script_to_dict(script)

    assert data["topBlockId"] == script.top_block_id
    hat = data["blocks"][script.top_block_id]
    assert hat["topLevel"] is True
    assert hat["parent"] is None
    goto = data["blocks"][hat["next"]]
    assert goto["opcode"] == "motion_goto"
    assert goto["inputs"]["TO"]["kind"] == "menu"
    menu = data["blocks"][goto["inputs"]["TO"]["block"]]
    assert menu == {
        "id": menu["id"],
        "opcode": "motion_goto_menu",
        "next": None,
        "parent": goto["id"],
        "inputs": {},
        "fields": {"TO": {"name": "TO", "value": "_random_"}},
        "shadow": True,
        "topLevel": False,
    }
    multiply = next(block for block in data["blocks"].values() if block["opcode"] == "operator_multiply")
    assert multiply["inputs"]["NUM1"] == {"name": "NUM1", "reference": "var-speed", "value": "speed", "kind": "local"}


def test_compile_file_writes_json(tmp_path):
    source = tmp_path / "program.txt"
    source.write_text(SOURCE, encoding="utf-8")
    names = tmp_path / "names.json"
    names.write_text(json.dumps({"locals": [{"name": "speed", "id": "var-speed"}]}), encoding="utf-8")
    output = tmp_path / "out" / "scripts.json"

    scripts = compile_file(source, output, names)

    data = json.loads(output.read_text(encoding="utf-8"))
    assert len(data) == len(scripts) == 1
    assert data[0]["topBlockId"] == scripts[0].top_block_id


def test_main_compiles_from_the_command_line(tmp_path):
    source = tmp_path / "program.txt"
    source.write_text("when green flag clicked\nsay [hello]\n", encoding="utf-8")
    output = tmp_path / "scripts.json"

    assert compiler.main([str(source), str(output), "--max-depth", "8"]) == 0
    data = json.loads(output.read_text(encoding="utf-8"))
    assert sorted(block["opcode"] for block in data[0]["blocks"].values()) == ["event_whenflagclicked", "looks_say", "text"]


def test_main_rejects_missing_input(tmp_path):
    with pytest.raises(FileNotFoundError, match="Input file not found"):
        compiler.main([str(tmp_path / "missing.txt"), str(tmp_path / "out.json")])


def test_failed_compilation_writes_nothing(tmp_path):
    source = tmp_path / "program.txt"
    source.write_text("when green flag clicked\nforever\n", encoding="utf-8")
    output = tmp_path / "scripts.json"

    with pytest.raises(ValueError, match="never closed"):
        compile_file(source, output)
    assert not output.exists()


def test_random_ids_still_produce_a_valid_graph():
    (script,) = compile_source(SOURCE, id_source=random_id_source())

    assert all(len(block_id) == 20 and block_id.isalnum() for block_id in script.blocks)
