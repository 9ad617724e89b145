import textwrap

import pytest

from blocks import InputKind, NameKind, ReferenceInput, SequentialIdSource, Shape
from errors import (
    MalformedConditionError,
    UnbalancedContainerError,
    UnrecognizedLineError,
    UnrecognizedTriggerError,
)
from names import build_known_names
from parser import Parser


def _parse(source: str, known_names=None):
    return Parser.from_source(textwrap.dedent(source), known_names=known_names)


def test_single_statement_script():
    scripts = _parse(
        """
        when green flag clicked
        move (10) steps
        """
    )

    assert len(scripts) == 1
    script = scripts[0]
    assert script.top_block.opcode == "event_whenflagclicked"
    assert script.top_block.top_level is True
    (move,) = script.body()
    assert move.opcode == "motion_movesteps"
    assert move.parent == script.top_block_id
    steps = script.input_block(move.id, "STEPS")
    assert (steps.opcode, steps.fields["NUM"].value, steps.shadow) == ("math_number", "10", True)
    assert move.inputs["STEPS"].kind is InputKind.NUMBER


def test_if_with_comparison_and_say():
    (script,) = _parse(
        """
        when green flag clicked
        if <x > 5> then
          say [hi]
        end
        """
    )

    (branch,) = script.body()
    assert branch.opcode == "control_if"
    condition = script.input_block(branch.id, "CONDITION")
    assert condition.opcode == "operator_gt"
    assert script.input_block(condition.id, "OPERAND1").fields["TEXT"].value == "x"
    assert script.input_block(condition.id, "OPERAND2").fields["NUM"].value == "5"
    (say,) = script.substack(branch.id)
    assert say.opcode == "looks_say"
    assert script.input_block(say.id, "MESSAGE").fields["TEXT"].value == "hi"


def test_if_else_rewrites_one_block():
    (script,) = _parse(
        """
        when green flag clicked
        if <touching (Cat v)> then
          hide
        else
          show
        end
        """
    )

    (branch,) = script.body()
    assert branch.opcode == "control_if_else"
    assert [block.opcode for block in script.substack(branch.id)] == ["looks_hide"]
    assert [block.opcode for block in script.substack(branch.id, "SUBSTACK2")] == ["looks_show"]
    condition = script.input_block(branch.id, "CONDITION")
    assert condition.opcode == "sensing_touchingobject"
    assert condition.parent == branch.id
    assert sum(1 for block in script.blocks.values() if block.opcode.startswith("control_if")) == 1


def test_known_global_in_value_slot_is_a_reference():
    names = build_known_names(global_variables=[{"name": "Score", "id": "var-1"}])
    (script,) = _parse(
        """
        when green flag clicked
        say (Score)
        set [Score v] to (0)
        """,
        known_names=names,
    )

    say, assign = script.body()
    assert say.inputs["MESSAGE"] == ReferenceInput(
        name="MESSAGE", ref_id="var-1", value="Score", kind=NameKind.GLOBAL_VARIABLE
    )
    assert assign.fields["VARIABLE"].id == "var-1"


def test_statements_after_a_container_follow_it():
    (script,) = _parse(
        """
        when this sprite clicked
        repeat (3)
          next costume
          wait (0.5) seconds
        end
        say [done] for (2) seconds
        """
    )

    loop, say = script.body()
    assert loop.opcode == "control_repeat"
    assert script.input_block(loop.id, "TIMES").opcode == "math_whole_number"
    assert [block.opcode for block in script.substack(loop.id)] == ["looks_nextcostume", "control_wait"]
    assert say.opcode == "looks_sayforsecs"
    assert say.parent == loop.id


def test_nested_containers():
    (script,) = _parse(
        """
        when green flag clicked
        forever
          repeat until <mouse down?>
            turn right (15) degrees
          end
          if <key (space v) pressed?> then
            stop [all v]
          end
        end
        """
    )

    (loop,) = script.body()
    until, branch = script.substack(loop.id)
    assert until.opcode == "control_repeat_until"
    assert until.parent == loop.id
    assert branch.parent == until.id
    assert [block.opcode for block in script.substack(until.id)] == ["motion_turnright"]
    (stop,) = script.substack(branch.id)
    assert stop.fields["STOP_OPTION"].value == "all"


def test_each_when_line_starts_a_new_script():
    scripts = _parse(
        """
        when green flag clicked
        show
        when I receive [start v]
        hide
        when [space v] key pressed
        """
    )

    assert [script.top_block.opcode for script in scripts] == [
        "event_whenflagclicked",
        "event_whenbroadcastreceived",
        "event_whenkeypressed",
    ]
    assert scripts[1].top_block.fields["BROADCAST_OPTION"].value == "start"
    assert scripts[2].body() == []
    assert not set(scripts[0].blocks) & set(scripts[1].blocks)


def test_hat_shapes_and_raw_threshold():
    (script,) = _parse("when [timer v] > (10)\n")

    hat = script.top_block
    assert hat.shape is Shape.HAT
    assert hat.opcode == "event_whengreaterthan"
    assert hat.fields["WHENGREATERTHANMENU"].value == "timer"
    assert hat.inputs["VALUE"].value == "10"


def test_missing_end_fails():
    with pytest.raises(UnbalancedContainerError, match="never closed"):
        _parse(
            """
            when green flag clicked
            forever
              move (1) steps
            """
        )


def test_missing_end_before_next_script_fails():
    with pytest.raises(UnbalancedContainerError, match="opened at line 3"):
        _parse(
            """
            when green flag clicked
            if <mouse down?> then
            when this sprite clicked
            """
        )


def test_stray_end_fails():
    with pytest.raises(UnbalancedContainerError, match="'end' without an open container"):
        _parse(
            """
            when green flag clicked
            show
            end
            """
        )


def test_else_without_if_fails():
    with pytest.raises(UnbalancedContainerError):
        _parse(
            """
            when green flag clicked
            else
            """
        )


def test_empty_condition_fails():
    with pytest.raises(MalformedConditionError):
        _parse(
            """
            when green flag clicked
            if <> then
            end
            """
        )


def test_bare_repeat_until_fails():
    with pytest.raises(MalformedConditionError, match="Condition is empty"):
        _parse(
            """
            when green flag clicked
            repeat until
              move (1) steps
            end
            """
        )


def test_unknown_line_reports_its_location():
    with pytest.raises(UnrecognizedLineError, match="Unrecognized line 'dance wildly'") as excinfo:
        _parse(
            """
            when green flag clicked
            dance wildly
            """
        )

    assert excinfo.value.line == 3
    assert "Location: line 3" in str(excinfo.value)
    assert "Code: dance wildly" in str(excinfo.value)


def test_unknown_trigger_fails():
    with pytest.raises(UnrecognizedTriggerError, match="when it rains"):
        _parse("when it rains\nshow\n")


def test_statement_before_any_trigger_fails():
    with pytest.raises(UnrecognizedLineError, match="before any 'when' trigger"):
        _parse("show\nwhen green flag clicked\n")


def test_empty_source_has_no_scripts():
    assert _parse("\n# nothing here\n") == []


def test_every_reachable_block_has_one_consistent_parent():
    (script,) = _parse(
        """
        when green flag clicked
        forever
          if <(x position) > (100) or <touching (edge v)?>> then
            point in direction ((direction) + (180))
          else
            move (pick random (1) to (10)) steps
          end
        end
        """
    )

    owners = {}
    for block in script.blocks.values():
        for value in block.block_inputs():
            assert value.block_id not in owners
            owners[value.block_id] = block.id
        if block.next is not None:
            assert block.next not in owners
            owners[block.next] = block.id
    for block_id, owner in owners.items():
        assert script.blocks[block_id].parent == owner
    assert set(owners) | {script.top_block_id} == set(script.blocks)


def test_custom_id_source_is_used():
    scripts = Parser.from_source("when green flag clicked\nshow\n", id_source=SequentialIdSource("n"))

    assert set(scripts[0].blocks) == {"n_1", "n_2"}
