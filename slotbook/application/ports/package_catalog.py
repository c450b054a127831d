from __future__ import annotations

from abc import ABC, abstractmethod

from slotbook.domain.entities.package_catalog import PackageCatalogEntry


class PackageCatalogPort(ABC):
    @abstractmethod
    def get_package(self, package_type: str) -> PackageCatalogEntry | None:
        """Get catalog entry by package type."""
        raise NotImplementedError
