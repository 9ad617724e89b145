from __future__ import annotations

import logging
from typing import Callable

import opcodes
from blocks import IdSource, Script, SequentialIdSource, Shape
from builder import ScriptBuilder
from errors import (
    UnbalancedContainerError,
    UnrecognizedLineError,
    UnrecognizedTriggerError,
    line_context,
)
from lexer import Lexer, Token
from names import KnownNames, build_known_names
from resolver import DEFAULT_MAX_DEPTH, Resolver

logger = logging.getLogger(__name__)

# line kind -> (container opcode, slot fed by the line argument)
_CONTAINERS: dict[str, tuple[str, str | None]] = {
    "FOREVER": ("control_forever", None),
    "REPEAT": ("control_repeat", "TIMES"),
    "REPEAT_UNTIL": ("control_repeat_until", "CONDITION"),
    "IF": ("control_if", "CONDITION"),
}


class Parser:
    """Drives the script builder one classified line at a time.

    Each ``when`` line closes the script in progress and starts a new one.
    Any error aborts the whole unit; no partial scripts are returned.
    """

    def __init__(
        self,
        tokens: list[Token],
        known_names: KnownNames | None = None,
        id_source: IdSource | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self.tokens = tokens
        self.index = 0
        self.known_names = known_names if known_names is not None else build_known_names()
        self.id_source = id_source if id_source is not None else SequentialIdSource()
        self.max_depth = max_depth
        self.scripts: list[Script] = []
        self._builder: ScriptBuilder | None = None
        self._resolver: Resolver | None = None
        self._handlers: dict[str, Callable[[Token], None]] = {
            "WHEN": self._parse_when,
            "FOREVER": self._parse_container,
            "REPEAT": self._parse_container,
            "REPEAT_UNTIL": self._parse_container,
            "IF": self._parse_container,
            "ELSE": self._parse_else,
            "END": self._parse_end,
            "STATEMENT": self._parse_statement,
        }

    @classmethod
    def from_source(
        cls,
        source: str,
        known_names: KnownNames | None = None,
        id_source: IdSource | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> list[Script]:
        tokens = Lexer(source).tokenize()
        return cls(tokens, known_names=known_names, id_source=id_source, max_depth=max_depth).parse()

    def parse(self) -> list[Script]:
        while not self._at_end():
            token = self._advance()
            with line_context(token.line, token.value):
                logger.debug("line %d %s: %s", token.line, token.type, token.value)
                self._handlers[token.type](token)
        self._finish_script()
        return self.scripts

    def _parse_when(self, token: Token) -> None:
        self._finish_script()
        found = opcodes.lookup(token.value, Shape.HAT)
        if found is None:
            raise UnrecognizedTriggerError(f"Unknown trigger '{token.value}'.")
        spec, values = found
        self._builder = ScriptBuilder(self.id_source)
        self._resolver = Resolver(self._builder, self.known_names, max_depth=self.max_depth)
        self._resolver.build(spec, values, owner_id=None)

    def _parse_container(self, token: Token) -> None:
        builder, resolver = self._require_script(token)
        opcode, slot = _CONTAINERS[token.type]
        values = {slot: token.argument or ""} if slot is not None else {}
        block_id = resolver.build(opcodes.get(opcode), values, owner_id=None)
        builder.open_container(block_id, token.line)

    def _parse_else(self, token: Token) -> None:
        if self._builder is None:
            raise UnbalancedContainerError("'else' without an open 'if'.")
        self._builder.switch_to_else(opcodes.get("control_if_else"), token.line)

    def _parse_end(self, token: Token) -> None:
        if self._builder is None:
            raise UnbalancedContainerError("'end' without an open container.")
        self._builder.close_container()

    def _parse_statement(self, token: Token) -> None:
        builder, resolver = self._require_script(token)
        found = opcodes.lookup(token.value, Shape.COMMAND)
        if found is None:
            raise UnrecognizedLineError(f"Unrecognized line '{token.value}'.")
        spec, values = found
        block_id = resolver.build(spec, values, owner_id=None)
        builder.attach(block_id)

    def _require_script(self, token: Token) -> tuple[ScriptBuilder, Resolver]:
        if self._builder is None or self._resolver is None:
            raise UnrecognizedLineError(f"'{token.value}' appears before any 'when' trigger.")
        return self._builder, self._resolver

    def _finish_script(self) -> None:
        if self._builder is None:
            return
        script = self._builder.finish()
        self.scripts.append(script)
        self._builder = None
        self._resolver = None

    def _at_end(self) -> bool:
        return self._current().type == "EOF"

    def _current(self) -> Token:
        return self.tokens[self.index]

    def _advance(self) -> Token:
        token = self.tokens[self.index]
        self.index += 1
        return token
