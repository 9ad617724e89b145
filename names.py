from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping, Union

from blocks import KnownName, NameKind
from errors import CompileError

logger = logging.getLogger(__name__)


class KnownNameError(CompileError):
    """Raised when a known-name table cannot be built from its input."""


# Sprite properties the pseudocode may read like variables. The id is the
# reporter opcode the editor uses for them.
BUILTIN_NAMES: dict[str, str] = {
    "size": "looks_size",
    "x position": "motion_xposition",
    "y position": "motion_yposition",
    "direction": "motion_direction",
    "costume #": "looks_costumenumbername.number",
    "costume name": "looks_costumenumbername.name",
    "volume": "sound_volume",
}

NameEntry = Union[KnownName, Mapping[str, Any], str]


class KnownNames:
    """Read-only name table; the first entry registered for a name wins."""

    def __init__(self, entries: Iterable[KnownName] = ()) -> None:
        self._entries = tuple(entries)
        by_name: dict[str, KnownName] = {}
        for entry in self._entries:
            by_name.setdefault(entry.name, entry)
        self._by_name = by_name

    def lookup(self, name: str) -> KnownName | None:
        return self._by_name.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[KnownName]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"KnownNames({len(self._entries)} entries)"


def build_known_names(
    global_variables: Iterable[NameEntry] = (),
    local_variables: Iterable[NameEntry] = (),
    sprites: Iterable[NameEntry] = (),
    include_builtins: bool = True,
) -> KnownNames:
    entries: list[KnownName] = []
    entries.extend(_coerce_entry(entry, NameKind.GLOBAL_VARIABLE) for entry in global_variables)
    entries.extend(_coerce_entry(entry, NameKind.LOCAL_VARIABLE) for entry in local_variables)
    if include_builtins:
        entries.extend(KnownName(name=name, id=opcode, kind=NameKind.BUILTIN) for name, opcode in BUILTIN_NAMES.items())
    entries.extend(_coerce_entry(entry, NameKind.SPRITE) for entry in sprites)
    return KnownNames(entries)


def load_known_names(path: Path, include_builtins: bool = True) -> KnownNames:
    """Read ``{"globals": [...], "locals": [...], "sprites": [...]}`` from a JSON file."""
    if not path.exists() or not path.is_file():
        raise KnownNameError(f"Name table file not found: '{path}'.")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise KnownNameError(f"Name table '{path}' is not valid JSON: {exc}.") from exc
    if not isinstance(payload, dict):
        raise KnownNameError(f"Name table '{path}' must be a JSON object.")
    unknown = set(payload) - {"globals", "locals", "sprites"}
    if unknown:
        raise KnownNameError(f"Name table '{path}' has unknown section(s): {', '.join(sorted(unknown))}.")
    names = build_known_names(
        global_variables=_section(payload, "globals", path),
        local_variables=_section(payload, "locals", path),
        sprites=_section(payload, "sprites", path),
        include_builtins=include_builtins,
    )
    logger.info("Loaded %d known names from %s", len(names), path)
    return names


def _section(payload: dict, key: str, path: Path) -> list:
    section = payload.get(key, [])
    if not isinstance(section, list):
        raise KnownNameError(f"Section '{key}' of name table '{path}' must be a list.")
    return section


def _coerce_entry(entry: NameEntry, kind: NameKind) -> KnownName:
    if isinstance(entry, KnownName):
        return entry
    if isinstance(entry, str):
        return KnownName(name=entry, id=entry, kind=kind)
    if isinstance(entry, Mapping):
        name = entry.get("name")
        if not isinstance(name, str) or not name:
            raise KnownNameError(f"Known {kind.value} entry {dict(entry)!r} has no name.")
        entry_id = entry.get("id", name)
        if not isinstance(entry_id, str):
            raise KnownNameError(f"Known {kind.value} '{name}' has a non-string id.")
        return KnownName(name=name, id=entry_id, kind=kind)
    raise KnownNameError(f"Unsupported known {kind.value} entry {entry!r}.")
