from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime


@dataclass(frozen=True)
class LessonPackage:
    id: str
    client_id: str
    package_type: str
    total_lessons: int
    lessons_used: int
    purchase_date: datetime
    expiration_date: datetime | None = None
    transaction_id: str | None = None

    @property
    def lessons_remaining(self) -> int:
        return max(0, self.total_lessons - self.lessons_used)

    def is_expired(self, now: datetime) -> bool:
        if self.expiration_date is None:
            return False
        return self.expiration_date < now

    def consume_one(self) -> "LessonPackage":
        return replace(self, lessons_used=self.lessons_used + 1)
