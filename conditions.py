from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

import opcodes
from blocks import BlockInput, InputKind
from errors import MalformedConditionError
from opcodes import SlotType

if TYPE_CHECKING:
    from builder import ScriptBuilder
    from resolver import Resolver

logger = logging.getLogger(__name__)

_PAIRS = {"(": ")", "[": "]", "<": ">"}

_LOGICAL = (("or", "operator_or"), ("and", "operator_and"))
_COMPARISONS = (("=", "operator_equals"), (">", "operator_gt"), ("<", "operator_lt"))

# Anchored prefix forms, tried in order after the operator splits.
_PREDICATES = (
    "sensing_keypressed",
    "sensing_touchingcolor",
    "sensing_touchingobject",
    "operator_not",
    "operator_contains",
    "sensing_coloristouchingcolor",
    "sensing_mousedown",
)

_NOT = re.compile(r"not(?:\s+|(?=[<(\[]))(?P<OPERAND>.+)")
_PURE_NUMBER = re.compile(r"-?\d+(\.\d+)?")


def bracket_depths(text: str) -> list[int]:
    """Nesting depth of every character; brackets count at their outer depth.

    ``<`` opens only when followed by a non-space and ``>`` closes only when
    preceded by one, so ``x > 5`` stays a comparison inside ``<x > 5>``.
    A closer only ends the innermost open group when it is that group's pair.
    """
    depths: list[int] = []
    stack: list[str] = []
    for index, ch in enumerate(text):
        opens = ch in "([" or (ch == "<" and index + 1 < len(text) and not text[index + 1].isspace())
        closes = ch in ")]" or (ch == ">" and index > 0 and not text[index - 1].isspace())
        if opens:
            depths.append(len(stack))
            stack.append(ch)
        elif closes and stack and _PAIRS[stack[-1]] == ch:
            stack.pop()
            depths.append(len(stack))
        else:
            depths.append(len(stack))
    return depths


def is_enclosed(text: str, openers: str = "([<") -> bool:
    """True when one bracket pair wraps the whole text."""
    if len(text) < 2 or text[0] not in openers or text[-1] != _PAIRS[text[0]]:
        return False
    depths = bracket_depths(text)
    return all(depth > 0 for depth in depths[1:-1]) and depths[-1] == 0


def split_first(text: str, word: str) -> tuple[str, str] | None:
    """Split around the first top-level ``word`` written with spaces on both sides."""
    depths = bracket_depths(text)
    separator = f" {word} "
    start = 0
    while True:
        index = text.find(separator, start)
        if index < 0:
            return None
        if all(depths[position] == 0 for position in range(index, index + len(separator))):
            left = text[:index].strip()
            right = text[index + len(separator) :].strip()
            if left and right:
                return left, right
        start = index + 1


class ConditionParser:
    """Turns condition text into a tree of boolean blocks."""

    def __init__(self, resolver: Resolver) -> None:
        self.resolver = resolver

    @property
    def builder(self) -> ScriptBuilder:
        return self.resolver.builder

    def parse(self, text: str, owner_id: str | None, depth: int = 0) -> str:
        """Build the boolean block for ``text`` under ``owner_id`` and return its id."""
        self.resolver.check_depth(depth)
        text = _strip_enclosing(text)
        if not text:
            raise MalformedConditionError("Condition is empty.")

        for word, opcode in _LOGICAL:
            parts = split_first(text, word)
            if parts is not None:
                return self._logical(opcode, parts, owner_id, depth)

        for symbol, opcode in _COMPARISONS:
            parts = split_first(text, symbol)
            if parts is not None:
                return self._comparison(opcode, parts, owner_id, depth)

        for opcode in _PREDICATES:
            spec = opcodes.get(opcode)
            values = spec.match(text)
            if values is None and opcode == "operator_not":
                found = _NOT.fullmatch(text)
                values = found.groupdict() if found is not None else None
            if values is not None:
                logger.debug("Condition %r -> %s", text, opcode)
                return self.resolver.build(spec, values, owner_id, depth)

        raise MalformedConditionError(f"Cannot parse condition '{text}'.")

    def _logical(self, opcode: str, parts: tuple[str, str], owner_id: str | None, depth: int) -> str:
        spec = opcodes.get(opcode)
        block_id = self.builder.new_id()
        inputs = {}
        for name, operand in zip(("OPERAND1", "OPERAND2"), parts):
            child_id = self.parse(operand, block_id, depth + 1)
            inputs[name] = BlockInput(name=name, kind=InputKind.BOOLEAN, block_id=child_id)
        self.builder.add_block(spec, block_id, inputs, parent=owner_id)
        return block_id

    def _comparison(self, opcode: str, parts: tuple[str, str], owner_id: str | None, depth: int) -> str:
        spec = opcodes.get(opcode)
        block_id = self.builder.new_id()
        inputs = {}
        for name, operand in zip(("OPERAND1", "OPERAND2"), parts):
            hint = SlotType.NUMBER if _PURE_NUMBER.fullmatch(_strip_enclosing(operand)) else SlotType.VALUE
            inputs[name] = self.resolver.resolve(operand, hint, block_id, name, depth + 1)
        self.builder.add_block(spec, block_id, inputs, parent=owner_id)
        return block_id


def _strip_enclosing(text: str) -> str:
    text = text.strip()
    while is_enclosed(text):
        text = text[1:-1].strip()
    return text
