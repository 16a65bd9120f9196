"""Zodiac sign identifiers accepted by the backend."""

from __future__ import annotations

SIGN_NAMES: dict[str, str] = {
    "aries": "Aries",
    "taurus": "Taurus",
    "gemini": "Gemini",
    "cancer": "Cancer",
    "leo": "Leo",
    "virgo": "Virgo",
    "libra": "Libra",
    "scorpio": "Scorpio",
    "sagittarius": "Sagittarius",
    "capricorn": "Capricorn",
    "aquarius": "Aquarius",
    "pisces": "Pisces",
}

# Batch order.
ALL_SIGNS: tuple[str, ...] = tuple(SIGN_NAMES)
