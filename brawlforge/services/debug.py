"""
Import tracing for individual cards.

Pipeline stages accept an optional debug sink and call it with an event
name, the card name and a details dict. Nothing is traced unless a sink is
passed in explicitly.
"""

import logging
from collections.abc import Callable, Iterable
from typing import Any

from brawlforge.services.name_normalizer import normalize_for_search

logger = logging.getLogger(__name__)

DebugSink = Callable[[str, str, dict[str, Any]], None]


def make_watch_sink(
    watched_names: Iterable[str],
    log: logging.Logger | None = None,
) -> DebugSink | None:
    """
    Build a sink that logs pipeline events for a few named cards.

    Names are compared by search key, so "Lorien" watches "Lórien" too.

    Returns:
        A debug sink, or None when no names are given.
    """
    watched = {normalize_for_search(name) for name in watched_names}
    watched.discard("")
    if not watched:
        return None

    target = log or logger

    def sink(event: str, card_name: str, details: dict[str, Any]) -> None:
        if normalize_for_search(card_name) in watched:
            target.info("[watch] %s: %s %s", event, card_name, details)

    return sink
