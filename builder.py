from __future__ import annotations

import logging
from dataclasses import dataclass, field

from blocks import Block, BlockInput, Field, IdSource, InputKind, InputValue, Script, Shape
from errors import IncompleteBlockError, UnbalancedContainerError
from opcodes import OpcodeSpec

logger = logging.getLogger(__name__)


@dataclass
class Frame:
    """One open container waiting for its body."""

    block_id: str
    line: int
    slot: str = "SUBSTACK"
    children: list[str] = field(default_factory=list)


class ScriptBuilder:
    """Block arena and container stack for the script being compiled.

    Blocks refer to each other by id only. Ids are handed out by the injected
    id source; allocation order doubles as creation order when the top-level
    sequence is assembled.
    """

    def __init__(self, id_source: IdSource) -> None:
        self._id_source = id_source
        self._order: dict[str, int] = {}
        self.blocks: dict[str, Block] = {}
        self.stack: list[Frame] = []
        self.top_block_id: str | None = None

    def new_id(self) -> str:
        block_id = self._id_source()
        if block_id in self._order:
            raise ValueError(f"Id source produced duplicate id '{block_id}'.")
        self._order[block_id] = len(self._order)
        return block_id

    def add_block(
        self,
        spec: OpcodeSpec,
        block_id: str,
        inputs: dict[str, InputValue] | None = None,
        fields: dict[str, Field] | None = None,
        parent: str | None = None,
    ) -> Block:
        inputs = dict(inputs or {})
        fields = dict(fields or {})
        missing = [slot.name for slot in spec.input_slots if slot.name not in inputs]
        missing += [slot.name for slot in spec.field_slots if slot.name not in fields]
        if missing:
            raise IncompleteBlockError(f"Block '{spec.opcode}' is missing slot(s): {', '.join(missing)}.")
        block = Block(
            id=block_id,
            opcode=spec.opcode,
            shape=spec.shape,
            inputs=inputs,
            fields=fields,
            parent=parent,
            top_level=spec.shape is Shape.HAT,
        )
        self.blocks[block_id] = block
        if block.top_level:
            self.top_block_id = block_id
        return block

    def add_shadow(self, opcode: str, field_name: str, value: str, owner_id: str) -> Block:
        block_id = self.new_id()
        block = Block(
            id=block_id,
            opcode=opcode,
            shape=Shape.REPORTER,
            fields={field_name: Field(name=field_name, value=value)},
            parent=owner_id,
            shadow=True,
        )
        self.blocks[block_id] = block
        return block

    def attach(self, block_id: str) -> None:
        """Register a statement in the innermost open container, if any."""
        if self.stack:
            self.stack[-1].children.append(block_id)

    def open_container(self, block_id: str, line: int) -> None:
        self.attach(block_id)
        self.stack.append(Frame(block_id=block_id, line=line))

    def close_container(self) -> Block:
        if not self.stack:
            raise UnbalancedContainerError("'end' without an open container.")
        frame = self.stack.pop()
        container = self.blocks[frame.block_id]
        self._wire_body(container, frame)
        if self.stack:
            container.parent = self.stack[-1].block_id
        return container

    def switch_to_else(self, if_else: OpcodeSpec, line: int) -> Block:
        """Turn the innermost 'if' into an 'if/else' and open its second body."""
        if not self.stack:
            raise UnbalancedContainerError("'else' without an open 'if'.")
        frame = self.stack[-1]
        container = self.blocks[frame.block_id]
        if container.opcode != "control_if" or frame.slot != "SUBSTACK":
            raise UnbalancedContainerError(f"'else' inside '{container.opcode}' instead of an open 'if'.")
        self.stack.pop()
        self._wire_body(container, frame)
        container.opcode = if_else.opcode
        self.stack.append(Frame(block_id=container.id, line=line, slot="SUBSTACK2"))
        return container

    def finish(self) -> Script:
        """Close the script: check the stack and chain the free blocks under the hat."""
        if self.stack:
            frame = self.stack[-1]
            opcode = self.blocks[frame.block_id].opcode
            raise UnbalancedContainerError(
                f"'{opcode}' opened at line {frame.line} is never closed with 'end'.", line=frame.line
            )
        if self.top_block_id is None:
            raise ValueError("Script has no hat block.")
        hat = self.blocks[self.top_block_id]
        chain = self.free_blocks()
        _link(chain)
        if chain:
            hat.next = chain[0].id
            chain[0].parent = hat.id
        logger.debug("Assembled script %s: %d blocks, %d top-level", hat.id, len(self.blocks), len(chain))
        return Script(top_block_id=hat.id, blocks=self.blocks)

    def consumed_ids(self) -> set[str]:
        return {value.block_id for block in self.blocks.values() for value in block.block_inputs()}

    def free_blocks(self) -> list[Block]:
        used = self.consumed_ids()
        free = [
            block
            for block in self.blocks.values()
            if block.id not in used and not block.shadow and not block.top_level and block.parent is None
        ]
        free.sort(key=lambda block: self._order[block.id])
        return free

    def _wire_body(self, container: Block, frame: Frame) -> None:
        if not frame.children:
            return
        children = [self.blocks[child_id] for child_id in frame.children]
        _link(children)
        children[0].parent = container.id
        container.inputs[frame.slot] = BlockInput(name=frame.slot, kind=InputKind.SUBSTACK, block_id=children[0].id)


def _link(sequence: list[Block]) -> None:
    for current, following in zip(sequence, sequence[1:]):
        current.next = following.id
        following.parent = current.id
