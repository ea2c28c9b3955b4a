"""Utility helpers for the restaurant discovery backend."""

from __future__ import annotations

import math
import unicodedata
from typing import Optional

EARTH_RADIUS_KM = 6371.0


def mask_secret(value: Optional[str], visible: int = 4) -> str:
    if not value:
        return "unset"
    if len(value) <= visible * 2:
        return "*" * len(value)
    return f"{value[:visible]}...{value[-visible:]}"


def fold_text(text: Optional[str]) -> str:
    """Lower-case *text*; ``None`` becomes an empty string."""
    if not text:
        return ""
    return text.lower()


def strip_accents(text: str) -> str:
    """Remove combining marks so 'Rímac' and 'Rimac' compare equal."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometers."""
    R = EARTH_RADIUS_KM
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return R * c


def degree_delta(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Planar distance between two points measured in degrees."""
    return math.sqrt((lat2 - lat1) ** 2 + (lon2 - lon1) ** 2)
