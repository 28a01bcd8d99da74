"""
Scryfall bulk data shapes.

Raw card records are kept as the plain dicts Scryfall returns; these
TypedDicts document the fields the import pipeline reads. Every field is
optional because bulk data routinely omits keys (e.g. ``image_uris`` on
double-faced cards, ``oracle_text`` on split cards).

Bulk data: https://scryfall.com/docs/api/bulk-data
"""

from dataclasses import dataclass
from datetime import datetime
from typing import TypedDict


class ImageUris(TypedDict, total=False):
    small: str
    normal: str
    large: str
    png: str
    art_crop: str
    border_crop: str


class CardFace(TypedDict, total=False):
    name: str
    mana_cost: str
    type_line: str
    oracle_text: str
    colors: list[str]
    image_uris: ImageUris


class RawCardRecord(TypedDict, total=False):
    """One printing of a card as it appears in the default_cards bulk file."""

    id: str
    oracle_id: str
    name: str
    lang: str
    layout: str

    mana_cost: str
    cmc: float
    type_line: str
    oracle_text: str
    colors: list[str]
    color_identity: list[str]

    rarity: str
    set: str
    set_name: str
    released_at: str

    legalities: dict[str, str]
    games: list[str]

    card_faces: list[CardFace]
    image_uris: ImageUris
    scryfall_uri: str


@dataclass(frozen=True, slots=True)
class BulkDescriptor:
    """
    Metadata for one Scryfall bulk data file.

    Attributes:
        url: Download URI for the JSON payload
        size_bytes: Advertised payload size, used when the server sends no
            Content-Length
        updated_at: When Scryfall last regenerated the file
    """

    url: str
    size_bytes: int
    updated_at: datetime
    name: str = ""
    description: str = ""
