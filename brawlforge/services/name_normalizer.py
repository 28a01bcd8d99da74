"""
Card name normalization.

Single source of truth for turning a Scryfall card name into:

- a display name: human-readable, accents folded, split-card separators
  standardized, case preserved ("A-Lörièn // Fire" -> "Lorien // Fire")
- a search key: the display transforms plus lowercasing and stripping of
  everything that is not a letter or digit, except the face separator
  ("Ja-Gu'dul, Ghoul-Caster" -> "jagudulghoulcaster")

Import and search both go through this module, so a change here changes
what every stored search term means. Re-import after editing it.
"""

import re
import unicodedata
from dataclasses import dataclass

DIGITAL_PREFIX = "A-"
FACE_SEPARATOR = " // "

# Any run of slashes (and the whitespace around it) separates card faces
_SLASH_RUN = re.compile(r"\s*/+\s*")
# Also swallows whitespace between repeated slashes ("Fire/ /Ice")
_DISPLAY_SPLIT = re.compile(r"\s*/[\s/]*\s*")
_WHITESPACE_RUN = re.compile(r"\s+")
_COMBINING_MARKS = re.compile("[\u0300-\u036f]")
_SPECIAL_CHARACTERS = re.compile(r"[àáâãäåæçèéêëìíîïñòóôõöøùúûüýßœ]", re.IGNORECASE)
_CANONICAL_SEPARATOR = re.compile(r"\s//\s")

# Private-use code point; cannot occur in a folded, lowercased card name
_SEPARATOR_MARKER = "\ue000"
_NOT_SEARCHABLE = re.compile(f"[^a-z0-9{_SEPARATOR_MARKER}]")

# Applied before NFD decomposition. Ligatures and letters that do not
# decompose into a base letter plus combining mark need an explicit entry.
_CHARACTER_FOLDS = str.maketrans(
    {
        "ä": "a",
        "Ä": "A",
        "ö": "o",
        "Ö": "O",
        "ü": "u",
        "Ü": "U",
        "ç": "c",
        "Ç": "C",
        "ñ": "n",
        "Ñ": "N",
        "ø": "o",
        "Ø": "O",
        "æ": "ae",
        "Æ": "Ae",
        "œ": "oe",
        "Œ": "Oe",
        "ß": "ss",
    }
)


def has_digital_prefix(name: str) -> bool:
    """True if the name carries the Alchemy digital-variant prefix."""
    return name.startswith(DIGITAL_PREFIX)


def strip_digital_prefix(name: str) -> str:
    """Remove a leading Alchemy prefix, if present."""
    return name[len(DIGITAL_PREFIX) :] if has_digital_prefix(name) else name


def toggle_digital_prefix(name: str) -> str:
    """Return the other Alchemy form: prefixed names lose it, others gain it."""
    if has_digital_prefix(name):
        return strip_digital_prefix(name)
    return f"{DIGITAL_PREFIX}{name}"


def fold_accents(text: str) -> str:
    """Fold accented Latin letters and ligatures to plain ASCII letters."""
    folded = text.translate(_CHARACTER_FOLDS)
    return _COMBINING_MARKS.sub("", unicodedata.normalize("NFD", folded))


def normalize_for_display(name: str) -> str:
    """
    Normalize a card name for display.

    Strips the Alchemy prefix (from both halves of a split name),
    standardizes separators to " // " keeping at most two parts, folds
    accents and collapses whitespace. Case is preserved.

    normalize_for_search keeps every part, so for names with three or more
    parts the search key of the display name differs from the search key of
    the original ("a // b" versus "a // b // c").

    Args:
        name: Card name as Scryfall spells it

    Returns:
        Display name, or "" for empty or non-string input
    """
    if not name or not isinstance(name, str):
        return ""

    normalized = name.strip()

    if "/" in normalized:
        parts = _DISPLAY_SPLIT.split(normalized)[:2]
        return FACE_SEPARATOR.join(normalize_for_display(part) for part in parts)

    normalized = strip_digital_prefix(normalized)
    normalized = fold_accents(normalized)
    return _WHITESPACE_RUN.sub(" ", normalized).strip()


def normalize_for_search(name: str) -> str:
    """
    Normalize a card name into a search key.

    Applies the display transforms, lowercases, then drops every character
    that is not a-z or 0-9. The " // " face separator survives.

    Args:
        name: Card name or user query

    Returns:
        Search key, or "" for empty or non-string input
    """
    if not name or not isinstance(name, str):
        return ""

    normalized = _SLASH_RUN.sub(FACE_SEPARATOR, name.strip())
    normalized = strip_digital_prefix(normalized)
    normalized = normalized.replace(f"{FACE_SEPARATOR}{DIGITAL_PREFIX}", FACE_SEPARATOR)
    normalized = fold_accents(normalized).lower()

    protected = normalized.replace(FACE_SEPARATOR, _SEPARATOR_MARKER)
    stripped = _NOT_SEARCHABLE.sub("", protected)
    return stripped.replace(_SEPARATOR_MARKER, FACE_SEPARATOR)


def was_normalized(original_name: str, normalized_name: str) -> bool:
    """True if normalization changed the name."""
    return original_name != normalized_name


@dataclass(frozen=True, slots=True)
class ModificationInfo:
    """Which normalization steps apply to a name, for import debugging."""

    had_digital_prefix: bool
    had_special_characters: bool
    had_non_standard_slashes: bool
    had_extra_whitespace: bool
    search_key: str


def get_modification_info(name: str) -> ModificationInfo:
    """Describe what normalize_for_search will do to a name."""
    if not isinstance(name, str):
        return ModificationInfo(False, False, False, False, "")

    return ModificationInfo(
        had_digital_prefix=has_digital_prefix(name),
        had_special_characters=bool(_SPECIAL_CHARACTERS.search(name)),
        had_non_standard_slashes="/" in name and not _CANONICAL_SEPARATOR.search(name),
        had_extra_whitespace=bool(re.search(r"\s{2,}", name)) or name != name.strip(),
        search_key=normalize_for_search(name),
    )
