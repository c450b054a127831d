from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PackageCatalogEntry:
    package_type: str
    display_name: str
    total_lessons: int
    price_cents: int
