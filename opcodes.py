"""Static table of the visual operations the pseudocode can express.

Every entry pairs a Scratch opcode with its canonical pseudocode pattern. The
pattern is both the documentation handed to whoever writes the pseudocode and
the source of the anchored regex used to match lines and value tokens:

    (NAME)        value slot, ``[NAME]`` is accepted for it as well
    (NAME v)      dropdown slot, ``[NAME v]`` is equivalent and ``v`` optional
    <NAME>        boolean slot
    ?             a trailing question mark is optional

Entries are tried in table order and the first match wins, so longer forms
sharing a prefix (``say (..) for (..) seconds``) precede the shorter ones.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

from blocks import InputKind, Shape


class Category(str, Enum):
    MOTION = "motion"
    LOOKS = "looks"
    SOUND = "sound"
    EVENT = "event"
    CONTROL = "control"
    SENSING = "sensing"
    OPERATORS = "operators"
    VARIABLES = "variables"


class SlotType(str, Enum):
    NUMBER = "number"
    POSITIVE_NUMBER = "positive_number"
    WHOLE_NUMBER = "whole_number"
    ANGLE = "angle"
    TEXT = "text"
    COLOR = "color"
    BOOLEAN = "boolean"
    VALUE = "value"
    RAW = "raw"
    KEY_MENU = "key_menu"
    BROADCAST_MENU = "broadcast_menu"
    SOUND_MENU = "sound_menu"
    TOUCHING_MENU = "touching_menu"
    CLONE_MENU = "clone_menu"
    COSTUME_MENU = "costume_menu"
    BACKDROP_MENU = "backdrop_menu"
    GOTO_MENU = "goto_menu"
    GLIDE_MENU = "glide_menu"
    TOWARDS_MENU = "towards_menu"
    DISTANCE_MENU = "distance_menu"
    OF_OBJECT_MENU = "of_object_menu"
    VARIABLE_FIELD = "variable_field"
    CHOICE_FIELD = "choice_field"
    FIELD = "field"


FIELD_SLOT_TYPES = frozenset({SlotType.VARIABLE_FIELD, SlotType.CHOICE_FIELD, SlotType.FIELD})

# slot type -> (shadow opcode, shadow field, encoding tag)
LITERAL_SHADOWS: dict[SlotType, tuple[str, str, InputKind]] = {
    SlotType.NUMBER: ("math_number", "NUM", InputKind.NUMBER),
    SlotType.POSITIVE_NUMBER: ("math_positive_number", "NUM", InputKind.POSITIVE_NUMBER),
    SlotType.WHOLE_NUMBER: ("math_whole_number", "NUM", InputKind.WHOLE_NUMBER),
    SlotType.ANGLE: ("math_angle", "NUM", InputKind.ANGLE),
    SlotType.TEXT: ("text", "TEXT", InputKind.TEXT),
    SlotType.VALUE: ("text", "TEXT", InputKind.TEXT),
}

MENU_SHADOWS: dict[SlotType, tuple[str, str, InputKind]] = {
    SlotType.COLOR: ("colour_picker", "COLOUR", InputKind.COLOR),
    SlotType.KEY_MENU: ("sensing_keyoptions", "KEY_OPTION", InputKind.MENU),
    SlotType.BROADCAST_MENU: ("event_broadcast_menu", "BROADCAST_OPTION", InputKind.MENU),
    SlotType.SOUND_MENU: ("sound_sounds_menu", "SOUND_MENU", InputKind.MENU),
    SlotType.TOUCHING_MENU: ("sensing_touchingobjectmenu", "TOUCHINGOBJECTMENU", InputKind.MENU),
    SlotType.CLONE_MENU: ("control_create_clone_of_menu", "CLONE_OPTION", InputKind.MENU),
    SlotType.COSTUME_MENU: ("looks_costume", "COSTUME", InputKind.MENU),
    SlotType.BACKDROP_MENU: ("looks_backdrops", "BACKDROP", InputKind.MENU),
    SlotType.GOTO_MENU: ("motion_goto_menu", "TO", InputKind.MENU),
    SlotType.GLIDE_MENU: ("motion_glideto_menu", "TO", InputKind.MENU),
    SlotType.TOWARDS_MENU: ("motion_pointtowards_menu", "TOWARDS", InputKind.MENU),
    SlotType.DISTANCE_MENU: ("sensing_distancetomenu", "DISTANCETOMENU", InputKind.MENU),
    SlotType.OF_OBJECT_MENU: ("sensing_of_object_menu", "OBJECT", InputKind.MENU),
}

_DROPDOWN_SLOT_TYPES = FIELD_SLOT_TYPES | frozenset(MENU_SHADOWS) - {SlotType.COLOR}

_PLACEHOLDER = re.compile(
    r"\((?P<paren>[A-Z][A-Z0-9_]*)(?P<paren_v> v)?\)"
    r"|\[(?P<bracket>[A-Z][A-Z0-9_]*)(?P<bracket_v> v)?\]"
    r"|<(?P<angle>[A-Z][A-Z0-9_]*)>"
)


@dataclass(frozen=True)
class Slot:
    name: str
    type: SlotType
    choices: tuple[str, ...] = ()

    @property
    def is_field(self) -> bool:
        return self.type in FIELD_SLOT_TYPES


@dataclass(frozen=True)
class OpcodeSpec:
    opcode: str
    category: Category
    pattern: str
    shape: Shape
    slots: tuple[Slot, ...] = ()
    aliases: tuple[str, ...] = ()
    _regexes: tuple[re.Pattern[str], ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        slots = {slot.name: slot for slot in self.slots}
        regexes = tuple(_compile_pattern(pattern, slots) for pattern in (self.pattern, *self.aliases))
        object.__setattr__(self, "_regexes", regexes)

    def match(self, text: str) -> dict[str, str] | None:
        for regex in self._regexes:
            found = regex.fullmatch(text)
            if found is not None:
                return {name: value.strip() for name, value in found.groupdict().items()}
        return None

    def slot(self, name: str) -> Slot:
        for slot in self.slots:
            if slot.name == name:
                return slot
        raise KeyError(f"Opcode '{self.opcode}' has no slot '{name}'.")

    @property
    def input_slots(self) -> tuple[Slot, ...]:
        return tuple(slot for slot in self.slots if not slot.is_field)

    @property
    def field_slots(self) -> tuple[Slot, ...]:
        return tuple(slot for slot in self.slots if slot.is_field)


def _literal_regex(segment: str) -> str:
    pieces = re.split(r"(\s+)", segment)
    out: list[str] = []
    for index, piece in enumerate(pieces):
        if not piece:
            continue
        if piece.isspace():
            before = pieces[index - 1] if index > 0 else ""
            after = pieces[index + 1] if index + 1 < len(pieces) else ""
            between_words = before[-1:].isalnum() and after[:1].isalnum()
            out.append(r"\s+" if between_words else r"\s*")
        else:
            out.append(re.escape(piece).replace(r"\?", r"\??"))
    return "".join(out)


def _slot_regex(slot: Slot, dropdown: bool) -> str:
    name = slot.name
    if slot.type is SlotType.CHOICE_FIELD:
        options = "|".join(re.escape(choice) for choice in sorted(slot.choices, key=len, reverse=True))
        return rf"[(\[]?(?P<{name}>{options})(?:\s+v)?[)\]]?"
    if slot.type is SlotType.BOOLEAN:
        return rf"<(?P<{name}>.+?)>"
    if dropdown or slot.type in _DROPDOWN_SLOT_TYPES:
        return rf"[(\[](?P<{name}>.+?)(?:\s+v)?[)\]]"
    return rf"[(\[](?P<{name}>.+?)[)\]]"


def _compile_pattern(pattern: str, slots: dict[str, Slot]) -> re.Pattern[str]:
    parts: list[str] = []
    position = 0
    for found in _PLACEHOLDER.finditer(pattern):
        name = found.group("paren") or found.group("bracket") or found.group("angle")
        slot = slots.get(name)
        if slot is None:
            raise ValueError(f"Pattern {pattern!r} names unknown slot '{name}'.")
        parts.append(_literal_regex(pattern[position : found.start()]))
        parts.append(_slot_regex(slot, dropdown=bool(found.group("paren_v") or found.group("bracket_v"))))
        position = found.end()
    parts.append(_literal_regex(pattern[position:]))
    return re.compile("".join(parts))


def _spec(
    opcode: str,
    category: Category,
    pattern: str,
    shape: Shape = Shape.COMMAND,
    *slots: Slot,
    aliases: tuple[str, ...] = (),
) -> OpcodeSpec:
    return OpcodeSpec(opcode=opcode, category=category, pattern=pattern, shape=shape, slots=slots, aliases=aliases)


MOTION = Category.MOTION
LOOKS = Category.LOOKS
SOUND = Category.SOUND
EVENT = Category.EVENT
CONTROL = Category.CONTROL
SENSING = Category.SENSING
OPERATORS = Category.OPERATORS
VARIABLES = Category.VARIABLES

COMMAND = Shape.COMMAND
REPORTER = Shape.REPORTER
BOOLEAN = Shape.BOOLEAN
HAT = Shape.HAT
CONTAINER = Shape.CONTAINER

STOP_OPTIONS = ("all", "this script", "other scripts in sprite")
LOOKS_EFFECTS = ("color", "fisheye", "whirl", "pixelate", "mosaic", "brightness", "ghost")
SOUND_EFFECTS = ("pitch", "pan left/right")
MATH_FUNCTIONS = ("abs", "floor", "ceiling", "sqrt", "sin", "cos", "tan", "asin", "acos", "atan", "ln", "log", "e ^", "10 ^")

REGISTRY: tuple[OpcodeSpec, ...] = (
    # Events
    _spec("event_whenflagclicked", EVENT, "when green flag clicked", HAT,
          aliases=("when flag clicked", "when @greenFlag clicked")),
    _spec("event_whenthisspriteclicked", EVENT, "when this sprite clicked", HAT),
    _spec("event_whenbackdropswitchesto", EVENT, "when backdrop switches to [BACKDROP v]", HAT,
          Slot("BACKDROP", SlotType.FIELD)),
    _spec("event_whenbroadcastreceived", EVENT, "when I receive [BROADCAST_OPTION v]", HAT,
          Slot("BROADCAST_OPTION", SlotType.FIELD)),
    _spec("event_whenkeypressed", EVENT, "when [KEY_OPTION v] key pressed", HAT,
          Slot("KEY_OPTION", SlotType.FIELD)),
    _spec("event_whengreaterthan", EVENT, "when [WHENGREATERTHANMENU v] > (VALUE)", HAT,
          Slot("WHENGREATERTHANMENU", SlotType.CHOICE_FIELD, ("loudness", "timer")),
          Slot("VALUE", SlotType.RAW)),
    _spec("control_start_as_clone", CONTROL, "when I start as a clone", HAT),
    _spec("event_broadcastandwait", EVENT, "broadcast (BROADCAST_INPUT v) and wait", COMMAND,
          Slot("BROADCAST_INPUT", SlotType.BROADCAST_MENU)),
    _spec("event_broadcast", EVENT, "broadcast (BROADCAST_INPUT v)", COMMAND,
          Slot("BROADCAST_INPUT", SlotType.BROADCAST_MENU)),

    # Motion
    _spec("motion_movesteps", MOTION, "move (STEPS) steps", COMMAND, Slot("STEPS", SlotType.NUMBER)),
    _spec("motion_turnright", MOTION, "turn right (DEGREES) degrees", COMMAND,
          Slot("DEGREES", SlotType.NUMBER), aliases=("turn cw (DEGREES) degrees",)),
    _spec("motion_turnleft", MOTION, "turn left (DEGREES) degrees", COMMAND,
          Slot("DEGREES", SlotType.NUMBER), aliases=("turn ccw (DEGREES) degrees",)),
    _spec("motion_gotoxy", MOTION, "go to x: (X) y: (Y)", COMMAND,
          Slot("X", SlotType.NUMBER), Slot("Y", SlotType.NUMBER)),
    _spec("motion_goto", MOTION, "go to (TO v)", COMMAND, Slot("TO", SlotType.GOTO_MENU)),
    _spec("motion_glidesecstoxy", MOTION, "glide (SECS) secs to x: (X) y: (Y)", COMMAND,
          Slot("SECS", SlotType.NUMBER), Slot("X", SlotType.NUMBER), Slot("Y", SlotType.NUMBER)),
    _spec("motion_glideto", MOTION, "glide (SECS) secs to (TO v)", COMMAND,
          Slot("SECS", SlotType.NUMBER), Slot("TO", SlotType.GLIDE_MENU)),
    _spec("motion_pointindirection", MOTION, "point in direction (DIRECTION)", COMMAND,
          Slot("DIRECTION", SlotType.ANGLE)),
    _spec("motion_pointtowards", MOTION, "point towards (TOWARDS v)", COMMAND,
          Slot("TOWARDS", SlotType.TOWARDS_MENU)),
    _spec("motion_changexby", MOTION, "change x by (DX)", COMMAND, Slot("DX", SlotType.NUMBER)),
    _spec("motion_setx", MOTION, "set x to (X)", COMMAND, Slot("X", SlotType.NUMBER)),
    _spec("motion_changeyby", MOTION, "change y by (DY)", COMMAND, Slot("DY", SlotType.NUMBER)),
    _spec("motion_sety", MOTION, "set y to (Y)", COMMAND, Slot("Y", SlotType.NUMBER)),
    _spec("motion_ifonedgebounce", MOTION, "if on edge, bounce"),
    _spec("motion_setrotationstyle", MOTION, "set rotation style [STYLE v]", COMMAND,
          Slot("STYLE", SlotType.CHOICE_FIELD, ("left-right", "don't rotate", "all around"))),
    _spec("motion_xposition", MOTION, "x position", REPORTER),
    _spec("motion_yposition", MOTION, "y position", REPORTER),
    _spec("motion_direction", MOTION, "direction", REPORTER),

    # Looks
    _spec("looks_sayforsecs", LOOKS, "say (MESSAGE) for (SECS) seconds", COMMAND,
          Slot("MESSAGE", SlotType.TEXT), Slot("SECS", SlotType.NUMBER)),
    _spec("looks_say", LOOKS, "say (MESSAGE)", COMMAND, Slot("MESSAGE", SlotType.TEXT)),
    _spec("looks_thinkforsecs", LOOKS, "think (MESSAGE) for (SECS) seconds", COMMAND,
          Slot("MESSAGE", SlotType.TEXT), Slot("SECS", SlotType.NUMBER)),
    _spec("looks_think", LOOKS, "think (MESSAGE)", COMMAND, Slot("MESSAGE", SlotType.TEXT)),
    _spec("looks_switchcostumeto", LOOKS, "switch costume to (COSTUME v)", COMMAND,
          Slot("COSTUME", SlotType.COSTUME_MENU)),
    _spec("looks_nextcostume", LOOKS, "next costume"),
    _spec("looks_switchbackdropto", LOOKS, "switch backdrop to (BACKDROP v)", COMMAND,
          Slot("BACKDROP", SlotType.BACKDROP_MENU)),
    _spec("looks_nextbackdrop", LOOKS, "next backdrop"),
    _spec("looks_changesizeby", LOOKS, "change size by (CHANGE)", COMMAND, Slot("CHANGE", SlotType.NUMBER)),
    _spec("looks_setsizeto", LOOKS, "set size to (SIZE) %", COMMAND, Slot("SIZE", SlotType.NUMBER)),
    _spec("looks_changeeffectby", LOOKS, "change [EFFECT v] effect by (CHANGE)", COMMAND,
          Slot("EFFECT", SlotType.CHOICE_FIELD, LOOKS_EFFECTS), Slot("CHANGE", SlotType.NUMBER)),
    _spec("looks_seteffectto", LOOKS, "set [EFFECT v] effect to (VALUE)", COMMAND,
          Slot("EFFECT", SlotType.CHOICE_FIELD, LOOKS_EFFECTS), Slot("VALUE", SlotType.NUMBER)),
    _spec("looks_cleargraphiceffects", LOOKS, "clear graphic effects"),
    _spec("looks_show", LOOKS, "show"),
    _spec("looks_hide", LOOKS, "hide"),
    _spec("looks_gotofrontback", LOOKS, "go to [FRONT_BACK v] layer", COMMAND,
          Slot("FRONT_BACK", SlotType.CHOICE_FIELD, ("front", "back"))),
    _spec("looks_goforwardbackwardlayers", LOOKS, "go [FORWARD_BACKWARD v] (NUM) layers", COMMAND,
          Slot("FORWARD_BACKWARD", SlotType.CHOICE_FIELD, ("forward", "backward")),
          Slot("NUM", SlotType.WHOLE_NUMBER)),
    _spec("looks_size", LOOKS, "size", REPORTER),
    _spec("looks_costumenumbername", LOOKS, "costume [NUMBER_NAME v]", REPORTER,
          Slot("NUMBER_NAME", SlotType.CHOICE_FIELD, ("number", "name"))),
    _spec("looks_backdropnumbername", LOOKS, "backdrop [NUMBER_NAME v]", REPORTER,
          Slot("NUMBER_NAME", SlotType.CHOICE_FIELD, ("number", "name"))),

    # Sound
    _spec("sound_playuntildone", SOUND, "play sound (SOUND_MENU v) until done", COMMAND,
          Slot("SOUND_MENU", SlotType.SOUND_MENU)),
    _spec("sound_play", SOUND, "play sound (SOUND_MENU v)", COMMAND,
          Slot("SOUND_MENU", SlotType.SOUND_MENU), aliases=("start sound (SOUND_MENU v)",)),
    _spec("sound_stopallsounds", SOUND, "stop all sounds"),
    _spec("sound_changeeffectby", SOUND, "change [EFFECT v] effect by (VALUE)", COMMAND,
          Slot("EFFECT", SlotType.CHOICE_FIELD, SOUND_EFFECTS), Slot("VALUE", SlotType.NUMBER)),
    _spec("sound_seteffectto", SOUND, "set [EFFECT v] effect to (VALUE)", COMMAND,
          Slot("EFFECT", SlotType.CHOICE_FIELD, SOUND_EFFECTS), Slot("VALUE", SlotType.NUMBER)),
    _spec("sound_cleareffects", SOUND, "clear sound effects"),
    _spec("sound_changevolumeby", SOUND, "change volume by (VOLUME)", COMMAND, Slot("VOLUME", SlotType.NUMBER)),
    _spec("sound_setvolumeto", SOUND, "set volume to (VOLUME) %", COMMAND, Slot("VOLUME", SlotType.NUMBER)),
    _spec("sound_volume", SOUND, "volume", REPORTER),

    # Control
    _spec("control_wait", CONTROL, "wait (DURATION) seconds", COMMAND,
          Slot("DURATION", SlotType.POSITIVE_NUMBER)),
    _spec("control_wait_until", CONTROL, "wait until <CONDITION>", COMMAND,
          Slot("CONDITION", SlotType.BOOLEAN)),
    _spec("control_forever", CONTROL, "forever", CONTAINER),
    _spec("control_repeat", CONTROL, "repeat (TIMES)", CONTAINER, Slot("TIMES", SlotType.WHOLE_NUMBER)),
    _spec("control_repeat_until", CONTROL, "repeat until <CONDITION>", CONTAINER,
          Slot("CONDITION", SlotType.BOOLEAN)),
    _spec("control_if", CONTROL, "if <CONDITION> then", CONTAINER, Slot("CONDITION", SlotType.BOOLEAN)),
    _spec("control_if_else", CONTROL, "if <CONDITION> then ... else ... end", CONTAINER,
          Slot("CONDITION", SlotType.BOOLEAN)),
    _spec("control_stop", CONTROL, "stop [STOP_OPTION v]", COMMAND,
          Slot("STOP_OPTION", SlotType.CHOICE_FIELD, STOP_OPTIONS)),
    _spec("control_create_clone_of", CONTROL, "create clone of (CLONE_OPTION v)", COMMAND,
          Slot("CLONE_OPTION", SlotType.CLONE_MENU)),
    _spec("control_delete_this_clone", CONTROL, "delete this clone"),

    # Sensing
    _spec("sensing_askandwait", SENSING, "ask (QUESTION) and wait", COMMAND, Slot("QUESTION", SlotType.TEXT)),
    _spec("sensing_resettimer", SENSING, "reset timer"),
    _spec("sensing_setdragmode", SENSING, "set drag mode [DRAG_MODE v]", COMMAND,
          Slot("DRAG_MODE", SlotType.CHOICE_FIELD, ("draggable", "not draggable"))),
    _spec("sensing_touchingobject", SENSING, "touching (TOUCHINGOBJECTMENU v)?", BOOLEAN,
          Slot("TOUCHINGOBJECTMENU", SlotType.TOUCHING_MENU)),
    _spec("sensing_touchingcolor", SENSING, "touching color (COLOR)?", BOOLEAN, Slot("COLOR", SlotType.COLOR)),
    _spec("sensing_coloristouchingcolor", SENSING, "color (COLOR) is touching color (COLOR2)?", BOOLEAN,
          Slot("COLOR", SlotType.COLOR), Slot("COLOR2", SlotType.COLOR)),
    _spec("sensing_keypressed", SENSING, "key (KEY_OPTION v) pressed?", BOOLEAN,
          Slot("KEY_OPTION", SlotType.KEY_MENU)),
    _spec("sensing_mousedown", SENSING, "mouse down?", BOOLEAN),
    _spec("sensing_distanceto", SENSING, "distance to (DISTANCETOMENU v)", REPORTER,
          Slot("DISTANCETOMENU", SlotType.DISTANCE_MENU)),
    _spec("sensing_answer", SENSING, "answer", REPORTER),
    _spec("sensing_mousex", SENSING, "mouse x", REPORTER),
    _spec("sensing_mousey", SENSING, "mouse y", REPORTER),
    _spec("sensing_loudness", SENSING, "loudness", REPORTER),
    _spec("sensing_timer", SENSING, "timer", REPORTER),
    _spec("sensing_username", SENSING, "username", REPORTER),
    _spec("sensing_dayssince2000", SENSING, "days since 2000", REPORTER),
    _spec("sensing_current", SENSING, "current [CURRENTMENU v]", REPORTER,
          Slot("CURRENTMENU", SlotType.CHOICE_FIELD,
               ("year", "month", "date", "day of week", "hour", "minute", "second"))),

    # Operators
    _spec("operator_add", OPERATORS, "(NUM1) + (NUM2)", REPORTER,
          Slot("NUM1", SlotType.NUMBER), Slot("NUM2", SlotType.NUMBER)),
    _spec("operator_subtract", OPERATORS, "(NUM1) - (NUM2)", REPORTER,
          Slot("NUM1", SlotType.NUMBER), Slot("NUM2", SlotType.NUMBER)),
    _spec("operator_multiply", OPERATORS, "(NUM1) * (NUM2)", REPORTER,
          Slot("NUM1", SlotType.NUMBER), Slot("NUM2", SlotType.NUMBER)),
    _spec("operator_divide", OPERATORS, "(NUM1) / (NUM2)", REPORTER,
          Slot("NUM1", SlotType.NUMBER), Slot("NUM2", SlotType.NUMBER)),
    _spec("operator_mod", OPERATORS, "(NUM1) mod (NUM2)", REPORTER,
          Slot("NUM1", SlotType.NUMBER), Slot("NUM2", SlotType.NUMBER)),
    _spec("operator_random", OPERATORS, "pick random (FROM) to (TO)", REPORTER,
          Slot("FROM", SlotType.NUMBER), Slot("TO", SlotType.NUMBER)),
    _spec("operator_join", OPERATORS, "join (STRING1) (STRING2)", REPORTER,
          Slot("STRING1", SlotType.TEXT), Slot("STRING2", SlotType.TEXT),
          aliases=("join (STRING1) and (STRING2)",)),
    _spec("operator_letter_of", OPERATORS, "letter (LETTER) of (STRING)", REPORTER,
          Slot("LETTER", SlotType.WHOLE_NUMBER), Slot("STRING", SlotType.TEXT)),
    _spec("operator_length", OPERATORS, "length of (STRING)", REPORTER, Slot("STRING", SlotType.TEXT)),
    _spec("operator_round", OPERATORS, "round (NUM)", REPORTER, Slot("NUM", SlotType.NUMBER)),
    _spec("operator_mathop", OPERATORS, "[OPERATOR v] of (NUM)", REPORTER,
          Slot("OPERATOR", SlotType.CHOICE_FIELD, MATH_FUNCTIONS), Slot("NUM", SlotType.NUMBER)),
    _spec("sensing_of", SENSING, "[PROPERTY v] of (OBJECT v)", REPORTER,
          Slot("PROPERTY", SlotType.FIELD), Slot("OBJECT", SlotType.OF_OBJECT_MENU)),
    _spec("operator_gt", OPERATORS, "(OPERAND1) > (OPERAND2)", BOOLEAN,
          Slot("OPERAND1", SlotType.VALUE), Slot("OPERAND2", SlotType.VALUE)),
    _spec("operator_lt", OPERATORS, "(OPERAND1) < (OPERAND2)", BOOLEAN,
          Slot("OPERAND1", SlotType.VALUE), Slot("OPERAND2", SlotType.VALUE)),
    _spec("operator_equals", OPERATORS, "(OPERAND1) = (OPERAND2)", BOOLEAN,
          Slot("OPERAND1", SlotType.VALUE), Slot("OPERAND2", SlotType.VALUE)),
    _spec("operator_and", OPERATORS, "<OPERAND1> and <OPERAND2>", BOOLEAN,
          Slot("OPERAND1", SlotType.BOOLEAN), Slot("OPERAND2", SlotType.BOOLEAN)),
    _spec("operator_or", OPERATORS, "<OPERAND1> or <OPERAND2>", BOOLEAN,
          Slot("OPERAND1", SlotType.BOOLEAN), Slot("OPERAND2", SlotType.BOOLEAN)),
    _spec("operator_not", OPERATORS, "not <OPERAND>", BOOLEAN, Slot("OPERAND", SlotType.BOOLEAN)),
    _spec("operator_contains", OPERATORS, "(STRING1) contains (STRING2)?", BOOLEAN,
          Slot("STRING1", SlotType.TEXT), Slot("STRING2", SlotType.TEXT)),

    # Variables
    _spec("data_setvariableto", VARIABLES, "set [VARIABLE v] to (VALUE)", COMMAND,
          Slot("VARIABLE", SlotType.VARIABLE_FIELD), Slot("VALUE", SlotType.TEXT)),
    _spec("data_changevariableby", VARIABLES, "change [VARIABLE v] by (VALUE)", COMMAND,
          Slot("VARIABLE", SlotType.VARIABLE_FIELD), Slot("VALUE", SlotType.NUMBER)),
    _spec("data_showvariable", VARIABLES, "show variable [VARIABLE v]", COMMAND,
          Slot("VARIABLE", SlotType.VARIABLE_FIELD)),
    _spec("data_hidevariable", VARIABLES, "hide variable [VARIABLE v]", COMMAND,
          Slot("VARIABLE", SlotType.VARIABLE_FIELD)),
)

_BY_OPCODE: dict[str, OpcodeSpec] = {spec.opcode: spec for spec in REGISTRY}


def get(opcode: str) -> OpcodeSpec:
    spec = _BY_OPCODE.get(opcode)
    if spec is None:
        raise KeyError(f"Unknown opcode '{opcode}'.")
    return spec


def iter_shape(*shapes: Shape) -> Iterator[OpcodeSpec]:
    return (spec for spec in REGISTRY if spec.shape in shapes)


def lookup(text: str, *shapes: Shape) -> tuple[OpcodeSpec, dict[str, str]] | None:
    """Return the first entry whose pattern matches ``text`` and its slot values."""
    candidates = iter_shape(*shapes) if shapes else iter(REGISTRY)
    for spec in candidates:
        values = spec.match(text)
        if values is not None:
            return spec, values
    return None


def vocabulary() -> list[dict[str, str]]:
    """Opcode/pseudocode pairs describing every construct the compiler accepts."""
    return [{"opcode": spec.opcode, "pseudocode": spec.pattern} for spec in REGISTRY]
