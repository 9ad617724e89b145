from __future__ import annotations

import random
import string
from dataclasses import dataclass, field
from enum import Enum
from itertools import count
from typing import Callable, Union


class Shape(str, Enum):
    COMMAND = "command"
    REPORTER = "reporter"
    BOOLEAN = "boolean"
    HAT = "hat"
    CONTAINER = "container"


class InputKind(str, Enum):
    """Encoding tag of a nested block held by an input slot."""

    NUMBER = "number"
    POSITIVE_NUMBER = "positive_number"
    WHOLE_NUMBER = "whole_number"
    ANGLE = "angle"
    TEXT = "text"
    COLOR = "color"
    MENU = "menu"
    BOOLEAN = "boolean"
    REPORTER = "reporter"
    SUBSTACK = "substack"


class NameKind(str, Enum):
    GLOBAL_VARIABLE = "global"
    LOCAL_VARIABLE = "local"
    SPRITE = "sprite"
    BUILTIN = "builtin"


@dataclass(frozen=True)
class KnownName:
    name: str
    id: str
    kind: NameKind


@dataclass(frozen=True)
class Input:
    name: str


@dataclass(frozen=True)
class BlockInput(Input):
    kind: InputKind
    block_id: str


@dataclass(frozen=True)
class ReferenceInput(Input):
    ref_id: str
    value: str
    kind: NameKind


@dataclass(frozen=True)
class RawInput(Input):
    value: str


InputValue = Union[BlockInput, ReferenceInput, RawInput]


@dataclass(frozen=True)
class Field:
    name: str
    value: str
    id: str | None = None


@dataclass
class Block:
    id: str
    opcode: str
    shape: Shape
    inputs: dict[str, InputValue] = field(default_factory=dict)
    fields: dict[str, Field] = field(default_factory=dict)
    parent: str | None = None
    next: str | None = None
    top_level: bool = False
    shadow: bool = False

    def __post_init__(self) -> None:
        if self.shape is Shape.HAT and not self.top_level:
            raise ValueError(f"Hat block '{self.opcode}' must be top level.")
        if self.top_level and self.shape is not Shape.HAT:
            raise ValueError(f"Only hat blocks can be top level, got '{self.opcode}'.")
        if self.shadow and self.shape is not Shape.REPORTER:
            raise ValueError(f"Shadow block '{self.opcode}' must be a reporter.")

    def block_inputs(self) -> list[BlockInput]:
        return [value for value in self.inputs.values() if isinstance(value, BlockInput)]


@dataclass
class Script:
    top_block_id: str
    blocks: dict[str, Block] = field(default_factory=dict)

    @property
    def top_block(self) -> Block:
        return self.blocks[self.top_block_id]

    def chain(self, start_id: str | None) -> list[Block]:
        """Follow ``next`` links from ``start_id``."""
        out: list[Block] = []
        current = start_id
        while current is not None:
            block = self.blocks[current]
            out.append(block)
            current = block.next
        return out

    def body(self) -> list[Block]:
        return self.chain(self.top_block.next)

    def substack(self, block_id: str, slot: str = "SUBSTACK") -> list[Block]:
        value = self.blocks[block_id].inputs.get(slot)
        if not isinstance(value, BlockInput):
            return []
        return self.chain(value.block_id)

    def input_block(self, block_id: str, slot: str) -> Block:
        value = self.blocks[block_id].inputs[slot]
        if not isinstance(value, BlockInput):
            raise KeyError(f"Input '{slot}' of block '{block_id}' holds no block.")
        return self.blocks[value.block_id]


IdSource = Callable[[], str]


class SequentialIdSource:
    """Deterministic ids: ``block_1``, ``block_2``, ..."""

    def __init__(self, prefix: str = "block") -> None:
        self.prefix = prefix
        self._counter = count(1)

    def __call__(self) -> str:
        return f"{self.prefix}_{next(self._counter)}"


_ID_ALPHABET = string.ascii_letters + string.digits


def random_id_source(length: int = 20) -> IdSource:
    rng = random.SystemRandom()

    def new_id() -> str:
        return "".join(rng.choice(_ID_ALPHABET) for _ in range(length))

    return new_id
