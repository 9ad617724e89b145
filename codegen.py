from __future__ import annotations

import json
from pathlib import Path

from blocks import Block, BlockInput, Field, InputValue, RawInput, ReferenceInput, Script


def generate_scripts_json(scripts: list[Script]) -> list[dict]:
    return [script_to_dict(script) for script in scripts]


def write_scripts_json(scripts: list[Script], output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(generate_scripts_json(scripts), indent=2), encoding="utf-8")


def script_to_dict(script: Script) -> dict:
    """Render one script in the editor's ``createBlock`` shape."""
    return {
        "topBlockId": script.top_block_id,
        "blocks": {block_id: _block_json(block) for block_id, block in script.blocks.items()},
    }


def _block_json(block: Block) -> dict:
    return {
        "id": block.id,
        "opcode": block.opcode,
        "next": block.next,
        "parent": block.parent,
        "inputs": {name: _input_json(value) for name, value in block.inputs.items()},
        "fields": {name: _field_json(field) for name, field in block.fields.items()},
        "shadow": block.shadow,
        "topLevel": block.top_level,
    }


def _input_json(value: InputValue) -> dict:
    if isinstance(value, BlockInput):
        return {"name": value.name, "block": value.block_id, "kind": value.kind.value}
    if isinstance(value, ReferenceInput):
        return {"name": value.name, "reference": value.ref_id, "value": value.value, "kind": value.kind.value}
    if isinstance(value, RawInput):
        return {"name": value.name, "value": value.value}
    raise TypeError(f"Unsupported input value {value!r}.")


def _field_json(field: Field) -> dict:
    out = {"name": field.name, "value": field.value}
    if field.id is not None:
        out["id"] = field.id
    return out
