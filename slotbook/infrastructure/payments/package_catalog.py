from __future__ import annotations

from slotbook.application.ports.package_catalog import PackageCatalogPort
from slotbook.domain.entities.package_catalog import PackageCatalogEntry


PACKAGE_CATALOG: dict[str, PackageCatalogEntry] = {
    "single": PackageCatalogEntry("single", "Single Lesson", total_lessons=1, price_cents=8000),
    "five_pack": PackageCatalogEntry("five_pack", "5 Lesson Pack", total_lessons=5, price_cents=37500),
    "ten_pack": PackageCatalogEntry("ten_pack", "10 Lesson Pack", total_lessons=10, price_cents=70000),
    "two_athlete": PackageCatalogEntry("two_athlete", "2 Athletes", total_lessons=1, price_cents=14000),
    "three_athlete": PackageCatalogEntry("three_athlete", "3 Athletes", total_lessons=1, price_cents=18000),
    "class_pass": PackageCatalogEntry("class_pass", "Class Pass", total_lessons=1, price_cents=4500),
}


class PackageCatalogStore(PackageCatalogPort):
    def __init__(self, catalog: dict[str, PackageCatalogEntry] | None = None) -> None:
        self._catalog = catalog or PACKAGE_CATALOG

    def get_package(self, package_type: str) -> PackageCatalogEntry | None:
        normalized_key = package_type.lower().strip()
        return self._catalog.get(normalized_key)
