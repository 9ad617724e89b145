from __future__ import annotations

import logging
import re

import opcodes
from blocks import BlockInput, Field, InputKind, InputValue, RawInput, ReferenceInput, Shape
from builder import ScriptBuilder
from conditions import ConditionParser, bracket_depths, is_enclosed
from errors import NestingTooDeepError
from names import KnownNames
from opcodes import LITERAL_SHADOWS, MATH_FUNCTIONS, MENU_SHADOWS, OpcodeSpec, SlotType

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 32

# Menu entries the editor stores under internal ids.
MENU_ALIASES: dict[str, str] = {
    "random position": "_random_",
    "mouse-pointer": "_mouse_",
    "mouse pointer": "_mouse_",
    "myself": "_myself_",
    "edge": "_edge_",
}

# Lowest precedence first; within a level the rightmost operator splits.
_ARITHMETIC: tuple[tuple[tuple[str, str], ...], ...] = (
    (("+", "operator_add"), ("-", "operator_subtract")),
    (("*", "operator_multiply"), ("/", "operator_divide"), ("mod", "operator_mod")),
)

_FUNCTIONS = "|".join(re.escape(name) for name in sorted(MATH_FUNCTIONS, key=len, reverse=True))

# Looser spellings of a few reporters that the registry patterns do not cover.
_RELAXED_REPORTERS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("operator_join", re.compile(r"join\s*\((?P<STRING1>.+?)\s*,\s*(?P<STRING2>.+)\)")),
    ("operator_random", re.compile(r"pick\s+random\s+(?P<FROM>.+?)\s+to\s+(?P<TO>.+)")),
    ("operator_letter_of", re.compile(r"letter\s+(?P<LETTER>.+?)\s+of\s+(?P<STRING>.+)")),
    ("operator_mathop", re.compile(rf"(?P<OPERATOR>{_FUNCTIONS})\s+of\s+(?P<NUM>.+)")),
)

_QUOTED = re.compile(r""""(?P<double>[^"]*)"|'(?P<single>[^']*)'""")


class Resolver:
    """Turns argument text into inputs: references, shadows, or nested blocks.

    Resolution order for a value token:

    1. a name from the known-name table becomes a reference, never a block;
    2. a menu or colour slot gets a shadow menu block;
    3. ``<...>`` becomes a condition, arithmetic and reporter text a reporter;
    4. anything else is a shadow literal of the slot's kind.
    """

    def __init__(self, builder: ScriptBuilder, known_names: KnownNames, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self.builder = builder
        self.known_names = known_names
        self.max_depth = max_depth
        self.conditions = ConditionParser(self)

    def check_depth(self, depth: int) -> None:
        if depth > self.max_depth:
            raise NestingTooDeepError(f"Expression nesting exceeds the limit of {self.max_depth} levels.")

    def build(self, spec: OpcodeSpec, values: dict[str, str], owner_id: str | None, depth: int = 0) -> str:
        """Create a block for ``spec`` from matched slot text and return its id."""
        block_id = self.builder.new_id()
        inputs, fields = self.fill_slots(spec, values, block_id, depth)
        self.builder.add_block(spec, block_id, inputs, fields, parent=owner_id)
        return block_id

    def fill_slots(
        self,
        spec: OpcodeSpec,
        values: dict[str, str],
        owner_id: str,
        depth: int = 0,
    ) -> tuple[dict[str, InputValue], dict[str, Field]]:
        inputs: dict[str, InputValue] = {}
        fields: dict[str, Field] = {}
        for slot in spec.slots:
            raw = values.get(slot.name)
            if raw is None:
                continue
            if slot.type is SlotType.BOOLEAN:
                block_id = self.conditions.parse(raw, owner_id, depth + 1)
                inputs[slot.name] = BlockInput(name=slot.name, kind=InputKind.BOOLEAN, block_id=block_id)
            elif slot.type is SlotType.VARIABLE_FIELD:
                fields[slot.name] = self._variable_field(slot.name, _strip_dropdown(_unwrap(raw)))
            elif slot.is_field:
                fields[slot.name] = Field(name=slot.name, value=_strip_dropdown(_unwrap(raw)))
            elif slot.type is SlotType.RAW:
                inputs[slot.name] = RawInput(name=slot.name, value=_unwrap(raw))
            else:
                inputs[slot.name] = self.resolve(raw, slot.type, owner_id, slot.name, depth + 1)
        return inputs, fields

    def resolve(self, token: str, hint: SlotType, owner_id: str, slot: str, depth: int = 0) -> InputValue:
        """Resolve one argument token for ``slot`` of block ``owner_id``."""
        self.check_depth(depth)
        text = _unwrap(token)
        if hint in MENU_SHADOWS:
            text = _strip_dropdown(text)

        known = self.known_names.lookup(text)
        if known is not None:
            return ReferenceInput(name=slot, ref_id=known.id, value=known.name, kind=known.kind)

        if hint in MENU_SHADOWS:
            opcode, field_name, kind = MENU_SHADOWS[hint]
            value = text if hint is SlotType.COLOR else MENU_ALIASES.get(text, text)
            shadow = self.builder.add_shadow(opcode, field_name, value, owner_id)
            return BlockInput(name=slot, kind=kind, block_id=shadow.id)

        if is_enclosed(text, openers="<"):
            block_id = self.conditions.parse(text, owner_id, depth + 1)
            return BlockInput(name=slot, kind=InputKind.BOOLEAN, block_id=block_id)

        if not _QUOTED.fullmatch(text):
            block_id = self.expression(text, owner_id, depth)
            if block_id is not None:
                return BlockInput(name=slot, kind=InputKind.REPORTER, block_id=block_id)

        return self._literal(text, hint, owner_id, slot)

    def expression(self, text: str, owner_id: str, depth: int = 0) -> str | None:
        """Build a reporter for ``text`` if it reads as one; otherwise None."""
        split = _split_arithmetic(text)
        if split is not None:
            opcode, left, right = split
            return self.build(opcodes.get(opcode), {"NUM1": left, "NUM2": right}, owner_id, depth)

        found = opcodes.lookup(text, Shape.REPORTER)
        if found is not None:
            spec, values = found
            return self.build(spec, values, owner_id, depth)

        for opcode, pattern in _RELAXED_REPORTERS:
            match = pattern.fullmatch(text)
            if match is not None:
                return self.build(opcodes.get(opcode), match.groupdict(), owner_id, depth)
        return None

    def _literal(self, text: str, hint: SlotType, owner_id: str, slot: str) -> BlockInput:
        opcode, field_name, kind = LITERAL_SHADOWS.get(hint, LITERAL_SHADOWS[SlotType.VALUE])
        quoted = _QUOTED.fullmatch(text)
        if quoted is not None:
            text = quoted.group("double") if quoted.group("double") is not None else quoted.group("single")
        shadow = self.builder.add_shadow(opcode, field_name, text, owner_id)
        return BlockInput(name=slot, kind=kind, block_id=shadow.id)

    def _variable_field(self, slot: str, name: str) -> Field:
        known = self.known_names.lookup(name)
        if known is None:
            logger.warning("Variable '%s' is not in the known-name table; emitting it without an id.", name)
            return Field(name=slot, value=name)
        return Field(name=slot, value=known.name, id=known.id)


def _unwrap(text: str) -> str:
    text = text.strip()
    while is_enclosed(text, openers="(["):
        text = text[1:-1].strip()
    return text


def _strip_dropdown(text: str) -> str:
    if text.endswith(" v"):
        return text[:-2].rstrip()
    return text


def _split_arithmetic(text: str) -> tuple[str, str, str] | None:
    depths = bracket_depths(text)
    for level in _ARITHMETIC:
        best: tuple[int, str, str] | None = None
        for symbol, opcode in level:
            index = _rfind_operator(text, symbol, depths)
            if index is not None and (best is None or index > best[0]):
                best = (index, symbol, opcode)
        if best is not None:
            index, symbol, opcode = best
            return opcode, text[:index].strip(), text[index + len(symbol) :].strip()
    return None


def _rfind_operator(text: str, symbol: str, depths: list[int]) -> int | None:
    """Rightmost top-level ``symbol`` with a space or bracket on both sides."""
    end = len(text)
    while True:
        index = text.rfind(symbol, 0, end)
        if index <= 0:
            return None
        after = index + len(symbol)
        if depths[index] == 0 and after < len(text) and _is_edge(text[index - 1]) and _is_edge(text[after]):
            return index
        end = index


def _is_edge(ch: str) -> bool:
    return ch.isspace() or ch in "()[]"
