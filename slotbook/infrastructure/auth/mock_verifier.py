from __future__ import annotations

import logging

from slotbook.application.ports.identity import IdentityVerifierPort


class MockIdentityVerifier(IdentityVerifierPort):
    """
    Development verifier. Accepts ``dev:<user id>`` tokens, plus any explicit
    token-to-user mapping passed in.
    """

    PREFIX = "dev:"

    def __init__(self, tokens: dict[str, str] | None = None) -> None:
        self._tokens = dict(tokens or {})
        self._logger = logging.getLogger(__name__)

    def verify(self, token: str) -> str | None:
        if token in self._tokens:
            return self._tokens[token]
        if token.startswith(self.PREFIX) and len(token) > len(self.PREFIX):
            return token[len(self.PREFIX):]
        self._logger.info("Rejected mock token")
        return None
