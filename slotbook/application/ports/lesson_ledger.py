from __future__ import annotations

from abc import ABC, abstractmethod

from slotbook.domain.entities.lesson_package import LessonPackage


class LessonLedgerPort(ABC):
    @abstractmethod
    def get_lesson_package(self, client_id: str, package_id: str) -> LessonPackage | None:
        raise NotImplementedError

    @abstractmethod
    def list_lesson_packages(self, client_id: str) -> list[LessonPackage]:
        """Packages for a client, newest purchase first."""
        raise NotImplementedError

    @abstractmethod
    def add_lesson_package(self, package: LessonPackage) -> bool:
        """Create the package unless its id exists. Returns True if created."""
        raise NotImplementedError
