from __future__ import annotations

import contextvars
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional


@dataclass(frozen=True)
class _LineContext:
    line: int
    code: str


_CURRENT_LINE: contextvars.ContextVar[Optional[_LineContext]] = contextvars.ContextVar(
    "pseudoblocks_current_line", default=None
)


def _format_with_context(message: str, *, line: Optional[int] = None, code: Optional[str] = None) -> str:
    current = _CURRENT_LINE.get()
    if line is None and current is not None:
        line = current.line
        code = current.code if code is None else code
    if line is None:
        return message
    details = [f"Location: line {line}"]
    if code:
        details.append(f"Code: {code}")
    return f"{message}\n" + "\n".join(details)


@contextmanager
def line_context(line: int, code: str) -> Iterator[None]:
    """Attach a source line to every error raised inside the block."""
    token = _CURRENT_LINE.set(_LineContext(line=line, code=code))
    try:
        yield
    finally:
        _CURRENT_LINE.reset(token)


class CompileError(ValueError):
    """Base error; any subclass aborts the whole translation unit."""

    def __init__(self, message: str, *, line: Optional[int] = None, code: Optional[str] = None):
        super().__init__(_format_with_context(message, line=line, code=code))
        self.reason = message
        current = _CURRENT_LINE.get()
        self.line = line if line is not None else (current.line if current is not None else None)


class UnrecognizedLineError(CompileError):
    """Raised when a line matches no registered surface pattern."""


class UnbalancedContainerError(CompileError):
    """Raised for a stray 'end' or 'else', or a container left open."""


class MalformedConditionError(CompileError):
    """Raised when condition text matches none of the condition rules."""


class UnrecognizedTriggerError(CompileError):
    """Raised when a 'when' line matches no event trigger."""


class NestingTooDeepError(CompileError):
    """Raised when expression or condition nesting exceeds the depth limit."""


class IncompleteBlockError(CompileError):
    """Raised when a block is built without one of its declared slots."""
