from __future__ import annotations

from abc import ABC, abstractmethod


class IdentityVerifierPort(ABC):
    @abstractmethod
    def verify(self, token: str) -> str | None:
        """Return the caller's user id for a valid token, None otherwise."""
        raise NotImplementedError
