"""Keyword dialects for Indiscript.

Indiscript ships two spellings of the same nine keywords. The parser never
looks at the literal spelling of a keyword; it asks this module which *slot*
a word occupies in the selected dialect, so a program written in one dialect
behaves exactly like its word-for-word translation into the other.

Besides the keyword tables this module carries the small reference table and
sample programs the editor and docs pages display, served through the API.
"""

from enum import Enum, IntEnum
from typing import Dict, List, Optional, Tuple


class Dialect(str, Enum):
    KANNADA = "kannada"
    SANSKRIT = "sanskrit"


class Slot(IntEnum):
    """Grammar slots, in the order used by the keyword tables."""

    DECLARE = 0
    PRINT = 1
    IF = 2
    ELSE = 3
    FOR = 4
    WHILE = 5
    FUNCTION = 6
    ARRAY = 7
    RETURN = 8


KEYWORDS: Dict[Dialect, Tuple[str, ...]] = {
    Dialect.KANNADA: (
        "srsti",
        "mudrisu",
        "onduVele",
        "illadiddare",
        "chakkra",
        "jabaki",
        "kriya",
        "tuppada",
        "tippu",
    ),
    Dialect.SANSKRIT: (
        "srsti",
        "mudran",
        "yadhi",
        "anyatha",
        "chakra",
        "yavat",
        "karma",
        "suchi",
        "vyakti",
    ),
}

# Native-script spelling shown next to each keyword in the docs table.
_SCRIPT: Dict[Dialect, Tuple[str, ...]] = {
    Dialect.KANNADA: (
        "ಸೃಷ್ಟಿ",
        "ಮುದ್ರಿಸು",
        "ಒಂದು ವೇಳೆ",
        "ಇಲ್ಲದಿದ್ದರೆ",
        "ಚಕ್ರ",
        "ಜಬಾಕಿ",
        "ಕ್ರಿಯೆ",
        "ತುಪ್ಪಡ",
        "ತಿಪ್ಪು",
    ),
    Dialect.SANSKRIT: (
        "सृष्टि",
        "मुद्रण",
        "यदि",
        "अन्यथा",
        "चक्र",
        "यावत्",
        "कर्म",
        "सूची",
        "व्यक्ति",
    ),
}

# Descriptions and examples are written with {slot} placeholders and
# rendered per dialect.
_REFERENCE = (
    (Slot.DECLARE, "Used to declare a variable.", "{DECLARE} x = 10"),
    (Slot.PRINT, "Prints output to console.", '{PRINT} "Hello World"'),
    (Slot.IF, "Executes a block of code if a condition is true.", "{IF} (x > 5) {{ {PRINT} x }}"),
    (Slot.ELSE, "Executes alternative block if condition is false.", "{ELSE} {{ {PRINT} 0 }}"),
    (
        Slot.FOR,
        "For loop - repeats code block with initialization, condition, and increment.",
        "{FOR} ({DECLARE} i = 0; i < 5; i = i + 1) {{ {PRINT} i }}",
    ),
    (Slot.WHILE, "While loop - repeats code block while condition is true.", "{WHILE} (x > 0) {{ {PRINT} x }}"),
    (Slot.FUNCTION, "Declares a function with parameters.", "{FUNCTION} add(a, b) {{ {RETURN} a + b }}"),
    (Slot.ARRAY, "Declares an array/list to store multiple values.", "{ARRAY} nums = [1, 2, 3, 4, 5]"),
    (Slot.RETURN, "Returns a value from a function.", "{RETURN} x + y"),
)

_SAMPLES = {
    "basic": (
        "// Basic variable and print\n"
        '{DECLARE} name = "IndScript"\n'
        "{PRINT} name\n"
        '{PRINT} "Welcome to IndScript!"'
    ),
    "conditions": (
        "// If-else conditions\n"
        "{DECLARE} age = 18\n"
        "{IF} (age >= 18) {{\n"
        '    {PRINT} "You are an adult"\n'
        "}} {ELSE} {{\n"
        '    {PRINT} "You are a minor"\n'
        "}}"
    ),
    "loops": (
        "// For loop example\n"
        "{FOR} ({DECLARE} i = 1; i <= 5; i = i + 1) {{\n"
        '    {PRINT} "Count: " + i\n'
        "}}\n"
        "\n"
        "// While loop example\n"
        "{DECLARE} x = 10\n"
        "{WHILE} (x > 0) {{\n"
        "    {PRINT} x\n"
        "    x = x - 1\n"
        "}}"
    ),
    "functions": (
        "// Function declaration and usage\n"
        "{FUNCTION} greet(name) {{\n"
        '    {RETURN} "Hello, " + name + "!"\n'
        "}}\n"
        "\n"
        '{DECLARE} message = greet("World")\n'
        "{PRINT} message"
    ),
    "arrays": (
        "// Array operations\n"
        "{ARRAY} numbers = [1, 2, 3, 4, 5]\n"
        "{PRINT} numbers\n"
        '{ARRAY} fruits = ["apple", "banana", "mango"]\n'
        "{PRINT} fruits"
    ),
}


def get_dialect(name) -> Dialect:
    """Resolve a dialect from a `Dialect` or a case-insensitive name.

    Raises:
        ValueError: if `name` is not one of the known dialects.
    """
    if isinstance(name, Dialect):
        return name
    try:
        return Dialect(str(name).strip().lower())
    except ValueError:
        known = ", ".join(d.value for d in Dialect)
        raise ValueError(f"Unknown dialect '{name}' (expected one of: {known})") from None


def keyword_slot(dialect: Dialect, text: str) -> Optional[Slot]:
    """Return the slot `text` occupies in `dialect`, or None for a non-keyword."""
    try:
        return Slot(KEYWORDS[dialect].index(text))
    except ValueError:
        return None


def spelling(dialect: Dialect, slot: Slot) -> str:
    return KEYWORDS[dialect][slot]


def _words(dialect: Dialect) -> Dict[str, str]:
    return {slot.name: spelling(dialect, slot) for slot in Slot}


def keyword_reference(dialect: Dialect) -> List[Dict[str, str]]:
    """Rows of the keyword reference table rendered for `dialect`."""
    words = _words(dialect)
    rows = []
    for slot, description, example in _REFERENCE:
        keyword = f"{words[slot.name]} ({_SCRIPT[dialect][slot]})"
        rows.append(
            {
                "slot": slot.name.lower(),
                "keyword": keyword,
                "description": description,
                "example": example.format(**words),
            }
        )
    return rows


def sample_programs(dialect: Dialect) -> Dict[str, str]:
    """Sample programs keyed by topic, spelled in `dialect`."""
    words = _words(dialect)
    return {name: template.format(**words) for name, template in _SAMPLES.items()}
