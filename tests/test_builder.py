import pytest

import opcodes
from blocks import BlockInput, InputKind, SequentialIdSource
from builder import ScriptBuilder
from errors import IncompleteBlockError, UnbalancedContainerError


def _builder_with_hat():
    builder = ScriptBuilder(SequentialIdSource())
    builder.add_block(opcodes.get("event_whenflagclicked"), builder.new_id())
    return builder


def _statement(builder, opcode):
    block_id = builder.new_id()
    builder.add_block(opcodes.get(opcode), block_id)
    builder.attach(block_id)
    return block_id


def _container(builder, opcode, line=1):
    block_id = builder.new_id()
    condition_id = builder.new_id()
    builder.add_block(opcodes.get("sensing_mousedown"), condition_id, parent=block_id)
    inputs = {"CONDITION": BlockInput(name="CONDITION", kind=InputKind.BOOLEAN, block_id=condition_id)}
    builder.add_block(opcodes.get(opcode), block_id, inputs)
    builder.open_container(block_id, line)
    return block_id


def test_finish_chains_top_level_statements_under_the_hat():
    builder = _builder_with_hat()
    first = _statement(builder, "looks_show")
    second = _statement(builder, "looks_hide")

    script = builder.finish()

    assert script.top_block.next == first
    assert [block.id for block in script.body()] == [first, second]
    assert script.blocks[second].parent == first


def test_close_container_wires_the_body():
    builder = _builder_with_hat()
    loop = builder.new_id()
    builder.add_block(opcodes.get("control_forever"), loop)
    builder.open_container(loop, 2)
    inner = _statement(builder, "looks_nextcostume")
    builder.close_container()

    script = builder.finish()

    assert [block.id for block in script.body()] == [loop]
    assert [block.id for block in script.substack(loop)] == [inner]
    assert script.blocks[inner].parent == loop


def test_nested_container_gets_the_outer_container_as_parent():
    builder = _builder_with_hat()
    outer = builder.new_id()
    builder.add_block(opcodes.get("control_forever"), outer)
    builder.open_container(outer, 2)
    inner = _container(builder, "control_if", line=3)
    builder.close_container()
    builder.close_container()

    script = builder.finish()

    assert script.blocks[inner].parent == outer
    assert script.substack(outer)[0].id == inner


def test_switch_to_else_keeps_the_block_id():
    builder = _builder_with_hat()
    branch = _container(builder, "control_if")
    then_id = _statement(builder, "looks_hide")
    builder.switch_to_else(opcodes.get("control_if_else"), 4)
    else_id = _statement(builder, "looks_show")
    builder.close_container()

    script = builder.finish()
    block = script.blocks[branch]

    assert block.opcode == "control_if_else"
    assert [b.id for b in script.substack(branch)] == [then_id]
    assert [b.id for b in script.substack(branch, "SUBSTACK2")] == [else_id]
    assert [b.id for b in script.body()] == [branch]


def test_stray_end_and_else_are_rejected():
    builder = _builder_with_hat()
    with pytest.raises(UnbalancedContainerError, match="'end' without"):
        builder.close_container()
    with pytest.raises(UnbalancedContainerError, match="'else' without"):
        builder.switch_to_else(opcodes.get("control_if_else"), 1)


def test_else_inside_a_loop_is_rejected():
    builder = _builder_with_hat()
    loop = builder.new_id()
    builder.add_block(opcodes.get("control_forever"), loop)
    builder.open_container(loop, 2)

    with pytest.raises(UnbalancedContainerError, match="instead of an open 'if'"):
        builder.switch_to_else(opcodes.get("control_if_else"), 3)


def test_second_else_is_rejected():
    builder = _builder_with_hat()
    _container(builder, "control_if")
    builder.switch_to_else(opcodes.get("control_if_else"), 2)

    with pytest.raises(UnbalancedContainerError):
        builder.switch_to_else(opcodes.get("control_if_else"), 3)


def test_open_container_at_finish_names_its_line():
    builder = _builder_with_hat()
    _container(builder, "control_repeat_until", line=7)

    with pytest.raises(UnbalancedContainerError, match="opened at line 7") as excinfo:
        builder.finish()
    assert excinfo.value.line == 7


def test_missing_slot_is_an_incomplete_block():
    builder = _builder_with_hat()

    with pytest.raises(IncompleteBlockError, match="STEPS"):
        builder.add_block(opcodes.get("motion_movesteps"), builder.new_id())


def test_duplicate_ids_are_rejected():
    builder = ScriptBuilder(lambda: "same")
    builder.new_id()

    with pytest.raises(ValueError, match="duplicate id"):
        builder.new_id()
