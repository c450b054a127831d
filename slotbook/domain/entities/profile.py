from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Trainer:
    id: str
    name: str
    email: str = ""
    active: bool = True
    timezone: str | None = None


@dataclass(frozen=True)
class ClientProfile:
    id: str
    first_name: str
    last_name: str
    email_address: str
    phone_number: str | None = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()
