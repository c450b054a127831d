from __future__ import annotations

import logging

import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials

from slotbook.application.ports.identity import IdentityVerifierPort


logger = logging.getLogger(__name__)


def _ensure_app(project_id: str | None) -> None:
    try:
        firebase_admin.get_app()
    except ValueError:
        options = {"projectId": project_id} if project_id else None
        firebase_admin.initialize_app(credentials.ApplicationDefault(), options)
        logger.info("Firebase Admin initialized with default credentials")


class FirebaseIdentityVerifier(IdentityVerifierPort):
    def __init__(self, project_id: str | None = None) -> None:
        _ensure_app(project_id)

    def verify(self, token: str) -> str | None:
        try:
            decoded = firebase_auth.verify_id_token(token)
        except (ValueError, firebase_auth.InvalidIdTokenError, firebase_auth.ExpiredIdTokenError) as e:
            logger.info("Rejected ID token", extra={"error": str(e)})
            return None
        return decoded.get("uid") or decoded.get("sub")
