from __future__ import annotations

from collections import Counter

from blocks import Block, Script
from errors import CompileError


class GraphValidationError(CompileError):
    """Raised when a finished script breaks the block-graph invariants."""


def validate_scripts(scripts: list[Script]) -> None:
    seen: dict[str, str] = {}
    for script in scripts:
        validate_script(script)
        for block_id in script.blocks:
            owner = seen.get(block_id)
            if owner is not None:
                raise GraphValidationError(
                    f"Block id '{block_id}' is used by scripts '{owner}' and '{script.top_block_id}'."
                )
            seen[block_id] = script.top_block_id


def validate_script(script: Script) -> None:
    blocks = script.blocks
    if script.top_block_id not in blocks:
        raise GraphValidationError(f"Top block '{script.top_block_id}' is missing from its script.")
    tops = [block.id for block in blocks.values() if block.top_level]
    if tops != [script.top_block_id]:
        raise GraphValidationError(
            f"Script '{script.top_block_id}' must have exactly one top-level hat, found {len(tops)}."
        )

    owners: Counter[str] = Counter()
    for block in blocks.values():
        for value in block.block_inputs():
            _check_edge(blocks, block, value.block_id, f"input '{value.name}'")
            owners[value.block_id] += 1
        if block.next is not None:
            if block.shadow:
                raise GraphValidationError(f"Shadow block '{block.id}' has a next block.")
            _check_edge(blocks, block, block.next, "next")
            follower = blocks[block.next]
            if follower.shadow or follower.top_level:
                raise GraphValidationError(f"Block '{block.id}' is followed by '{follower.id}', which cannot be stacked.")
            owners[block.next] += 1

    for block_id, count in owners.items():
        if count > 1:
            raise GraphValidationError(f"Block '{block_id}' is owned {count} times.")
    for block in blocks.values():
        if not block.top_level and block.parent is None:
            raise GraphValidationError(f"Block '{block.id}' ({block.opcode}) has no parent.")
        if block.parent is not None and block.parent not in blocks:
            raise GraphValidationError(f"Block '{block.id}' names missing parent '{block.parent}'.")

    reached = _walk(script)
    unreached = [block_id for block_id in blocks if block_id not in reached]
    if unreached:
        raise GraphValidationError(f"Block(s) not reachable from the hat: {', '.join(unreached)}.")


def _check_edge(blocks: dict[str, Block], owner: Block, target_id: str, via: str) -> None:
    target = blocks.get(target_id)
    if target is None:
        raise GraphValidationError(f"Block '{owner.id}' {via} points at missing block '{target_id}'.")
    if target.parent != owner.id:
        raise GraphValidationError(
            f"Block '{target_id}' is reached from '{owner.id}' via {via} but its parent is '{target.parent}'."
        )


def _walk(script: Script) -> set[str]:
    reached: set[str] = set()
    pending = [script.top_block_id]
    while pending:
        block_id = pending.pop()
        if block_id in reached:
            raise GraphValidationError(f"Block '{block_id}' is reached twice; the graph has a cycle.")
        reached.add(block_id)
        block = script.blocks[block_id]
        pending.extend(value.block_id for value in block.block_inputs())
        if block.next is not None:
            pending.append(block.next)
    return reached
