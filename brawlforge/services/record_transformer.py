"""
Raw printing -> CanonicalCardRecord transformation.

Derives everything the deck builder needs that Scryfall does not hand us
directly: commander and companion eligibility, the companion deckbuilding
restriction, image fallbacks for multi-faced cards, display hints, the
three name tiers and the search terms.

Also home to post-transform validation and import statistics.
"""

import re
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from brawlforge.models.canonical_card import (
    CanonicalCardRecord,
    DisplayHints,
    SelectedPrinting,
)
from brawlforge.models.scryfall import CardFace, RawCardRecord
from brawlforge.services.name_normalizer import normalize_for_display, normalize_for_search
from brawlforge.services.search_terms import generate_search_terms

T = TypeVar("T")
ImageBundle = dict[str, str]

IMAGE_SIZES: tuple[str, ...] = ("small", "normal", "large", "png", "art_crop", "border_crop")

# Layouts whose card images are wider than tall
LANDSCAPE_LAYOUTS = frozenset({"battle", "planar"})

_COMPANION_RESTRICTION = re.compile(r"Companion[^(]*\(([^)]+)\)", re.IGNORECASE)


def first_present(*sources: T | None) -> T | None:
    """Return the first source that is neither None nor empty."""
    for source in sources:
        if source:
            return source
    return None


def can_be_commander(type_line: str) -> bool:
    """Legendary creatures and legendary planeswalkers can lead a Brawl deck."""
    lowered = type_line.lower()
    return "legendary" in lowered and ("creature" in lowered or "planeswalker" in lowered)


def can_be_companion(rules_text: str | None) -> bool:
    return "companion" in (rules_text or "").lower()


def extract_companion_restriction(rules_text: str | None) -> str | None:
    """
    Pull the parenthesized clause that follows the companion keyword.

    Returns None for cards without companion text or without a clause.
    """
    if not rules_text or not can_be_companion(rules_text):
        return None
    match = _COMPANION_RESTRICTION.search(rules_text)
    return match.group(1).strip() if match else None


def _faces(card: RawCardRecord) -> list[CardFace]:
    return list(card.get("card_faces") or [])


def _image_bundle(uris: Any) -> ImageBundle | None:
    """Keep the image sizes we store; None when nothing usable remains."""
    if not uris:
        return None
    bundle = {size: uris[size] for size in IMAGE_SIZES if uris.get(size)}
    return bundle or None


def _face_rules_text(faces: list[CardFace]) -> str | None:
    texts = [face.get("oracle_text") for face in faces if face.get("oracle_text")]
    return "\n//\n".join(texts) if texts else None


def resolve_image_uris(card: RawCardRecord) -> tuple[ImageBundle | None, ImageBundle | None]:
    """
    Resolve (front, back) image bundles.

    Front: the card's own images, else the first face's images.
    Back: the second face's images, if any.
    """
    faces = _faces(card)
    front_face = faces[0] if faces else {}
    back_face = faces[1] if len(faces) > 1 else {}

    front = first_present(
        _image_bundle(card.get("image_uris")),
        _image_bundle(front_face.get("image_uris")),
    )
    back = _image_bundle(back_face.get("image_uris"))
    return front, back


def transform_card(selected: SelectedPrinting) -> CanonicalCardRecord:
    """
    Transform the canonical printing of one identity into a storable record.

    Raises whatever the raw data provokes (e.g. a null type line); the
    caller decides whether to skip the card.
    """
    card = selected.card
    faces = _faces(card)

    name = card.get("name", "")
    type_line = card.get("type_line", "")
    # Vanilla cards have oracle_text ""; only a missing text falls back to the faces
    rules_text = card.get("oracle_text")
    if rules_text is None:
        rules_text = _face_rules_text(faces)

    front_images, back_images = resolve_image_uris(card)
    is_companion = can_be_companion(rules_text)

    face_names = [face.get("name", "") for face in faces]

    return CanonicalCardRecord(
        identity_id=card.get("oracle_id", ""),
        printing_id=card.get("id", ""),
        original_name=name,
        display_name=normalize_for_display(name),
        search_key=normalize_for_search(name),
        mana_cost=card.get("mana_cost"),
        mana_value=float(card.get("cmc", 0)),
        type_line=type_line,
        rules_text=rules_text,
        colors=tuple(card.get("colors") or ()),
        color_identity=tuple(card.get("color_identity") or ()),
        rarity=card.get("rarity", ""),
        set_code=card.get("set", ""),
        legal_set_codes=selected.legal_set_codes,
        can_be_commander=can_be_commander(type_line),
        can_be_companion=is_companion,
        companion_restriction=extract_companion_restriction(rules_text) if is_companion else None,
        image_uris=front_images,
        back_image_uris=back_images,
        display_hints=DisplayHints(
            preferred_orientation=(
                "landscape" if card.get("layout") in LANDSCAPE_LAYOUTS else "portrait"
            ),
            has_back_face=back_images is not None,
            meld_partner=None,
        ),
        scryfall_uri=card.get("scryfall_uri"),
        search_terms=tuple(generate_search_terms(name, face_names)),
    )


# --- Validation ---


@dataclass
class ValidationReport:
    """Result of validating transformed records before they are saved."""

    valid_records: list[CanonicalCardRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def validate_records(records: Iterable[CanonicalCardRecord]) -> ValidationReport:
    """
    Check required fields and identity uniqueness.

    Records with errors are left out of valid_records. Warnings do not
    exclude a record.
    """
    report = ValidationReport()
    seen_ids: set[str] = set()

    for record in records:
        problems: list[str] = []
        if not record.identity_id:
            problems.append(f"Card missing oracle_id: {record.original_name}")
        if not record.original_name:
            problems.append(f"Card missing name: {record.identity_id}")
        if not record.legal_set_codes:
            problems.append(f"Card has no legal set codes: {record.original_name}")
        if record.identity_id and record.identity_id in seen_ids:
            problems.append(
                f"Duplicate oracle_id found: {record.identity_id} ({record.original_name})"
            )

        if not record.type_line:
            report.warnings.append(f"Card missing type_line: {record.original_name}")
        if not record.set_code:
            report.warnings.append(f"Card missing set_code: {record.original_name}")

        if problems:
            report.errors.extend(problems)
            continue

        seen_ids.add(record.identity_id)
        report.valid_records.append(record)

    return report


# --- Statistics ---


@dataclass
class CardStatistics:
    """Summary counts over a set of processed records."""

    total: int = 0
    commanders: int = 0
    companions: int = 0
    by_rarity: dict[str, int] = field(default_factory=dict)
    by_color_identity: dict[str, int] = field(default_factory=dict)


def card_statistics(records: Iterable[CanonicalCardRecord]) -> CardStatistics:
    """Count commanders, companions, rarities and color identities."""
    records = list(records)
    rarities: Counter[str] = Counter()
    identities: Counter[str] = Counter()

    for record in records:
        rarities[record.rarity or "unknown"] += 1
        identities["".join(sorted(record.color_identity)) or "colorless"] += 1

    return CardStatistics(
        total=len(records),
        commanders=sum(1 for record in records if record.can_be_commander),
        companions=sum(1 for record in records if record.can_be_companion),
        by_rarity=dict(rarities),
        by_color_identity=dict(identities),
    )
