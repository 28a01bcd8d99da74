"""
Canonical Card Models.

This module defines the boundary between raw Scryfall printings and the
one-row-per-card records we persist.

INVARIANTS:
- A CanonicalCardRecord represents one card identity (oracle_id), not a printing
- legal_set_codes is never empty for a persisted record
- All models are frozen (immutable after construction)
"""

from dataclasses import dataclass, field
from typing import Any, Literal

from brawlforge.models.scryfall import RawCardRecord

Orientation = Literal["portrait", "landscape"]


@dataclass(frozen=True, slots=True)
class SearchTerm:
    """
    One lookup key for a card.

    Attributes:
        term: Search-normalized text (see normalize_for_search)
        is_primary: True only for the card's own name
    """

    term: str
    is_primary: bool = False


@dataclass(frozen=True, slots=True)
class SearchTermRow:
    """A search term bound to a persisted card row."""

    card_id: int
    term: str
    is_primary: bool


@dataclass(frozen=True, slots=True)
class DisplayHints:
    """
    Rendering hints for the UI.

    meld_partner is a reserved field and is always None: meld partner
    detection is not implemented.
    """

    preferred_orientation: Orientation = "portrait"
    has_back_face: bool = False
    meld_partner: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "preferred_orientation": self.preferred_orientation,
            "has_back_face": self.has_back_face,
            "meld_partner": self.meld_partner,
        }


@dataclass(frozen=True, slots=True)
class SelectedPrinting:
    """
    The canonical printing chosen for one card identity.

    Attributes:
        card: Raw Scryfall record of the chosen printing
        legal_set_codes: Every set code the identity legally appeared in
    """

    card: RawCardRecord
    legal_set_codes: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class CanonicalCardRecord:
    """
    A card identity ready to be persisted.

    Names come in three tiers:
        original_name: Exactly as Scryfall spells it
        display_name: Human-readable, accents folded, separators standardized
        search_key: Lowercased, punctuation stripped, used for matching
    """

    identity_id: str
    printing_id: str
    original_name: str
    display_name: str
    search_key: str

    mana_cost: str | None
    mana_value: float
    type_line: str
    rules_text: str | None
    colors: tuple[str, ...]
    color_identity: tuple[str, ...]
    rarity: str
    set_code: str
    legal_set_codes: tuple[str, ...]

    can_be_commander: bool
    can_be_companion: bool
    companion_restriction: str | None

    image_uris: dict[str, str] | None = None
    back_image_uris: dict[str, str] | None = None
    display_hints: DisplayHints = field(default_factory=DisplayHints)
    scryfall_uri: str | None = None

    search_terms: tuple[SearchTerm, ...] = ()
