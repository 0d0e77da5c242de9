"""Shared sport and venue-mode definitions.

This module is the single source of truth for the closed sets of sports and
venue modes used by the rating, tournament and season engines.
"""

from __future__ import annotations

from enum import Enum


class Sport(str, Enum):
    """Activity types. Each sport keeps fully separate ratings and matches."""

    PINGPONG = "pingpong"
    TENNIS = "tennis"
    BADMINTON = "badminton"


class RoomMode(str, Enum):
    """Venue rule sets.

    - OFFICE: casual venue, losses are dampened
    - PROFESSIONAL: placement volatility for a member's first matches
    - ARCADE: venue ratings are cosmetic and never move
    """

    OFFICE = "office"
    PROFESSIONAL = "professional"
    ARCADE = "arcade"


DEFAULT_ROOM_MODE = RoomMode.OFFICE


def parse_room_mode(raw: str | RoomMode | None) -> RoomMode:
    """Normalize a stored mode string, falling back to the default mode.

    Venues created before modes existed have no mode stored at all.
    """
    if isinstance(raw, RoomMode):
        return raw
    if not raw:
        return DEFAULT_ROOM_MODE
    try:
        return RoomMode(raw.strip().lower())
    except ValueError:
        return DEFAULT_ROOM_MODE


def parse_sport(raw: str | Sport) -> Sport:
    """Normalize a sport name, raising ValueError for unknown sports."""
    if isinstance(raw, Sport):
        return raw
    return Sport(raw.strip().lower())
