"""
Caller identification for the web service endpoints.

Tokens are issued by the host platform and stored in ``external_token``;
this module only looks them up and builds the Principal. Token issuing,
sessions and passwords are out of scope.

Accepted forms:
- ``Authorization: Bearer <token>``
- ``?wstoken=<token>``
"""

import time
import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security.utils import get_authorization_scheme_param
from sqlalchemy.orm import Session, joinedload

from somapi_backend.database import get_db
from somapi_backend.exceptions import UnauthorizedException
from somapi_backend.model.auth import ExternalToken
from somapi_backend.permissions.principal import Principal
from somapi_backend.settings import settings

logger = logging.getLogger(__name__)


def extract_token(request: Request) -> Optional[str]:
    authorization = request.headers.get("Authorization")
    scheme, credentials = get_authorization_scheme_param(authorization)
    if scheme.lower() == "bearer" and credentials:
        return credentials
    return request.query_params.get("wstoken") or None


def principal_from_token(token: str, db: Session, now: Optional[int] = None) -> Principal:
    """
    Build the Principal for a web service token.

    Raises:
        UnauthorizedException: token unknown or expired, or its user is
            deleted or suspended
    """
    now = int(time.time()) if now is None else now

    record = (
        db.query(ExternalToken)
        .options(joinedload(ExternalToken.user), joinedload(ExternalToken.service))
        .filter(ExternalToken.token == token)
        .first()
    )

    if record is None:
        raise UnauthorizedException(detail="Invalid token - token not found")

    if record.validuntil and record.validuntil < now:
        raise UnauthorizedException(detail="Invalid token - token expired")

    user = record.user
    if user is None or user.deleted or user.suspended:
        raise UnauthorizedException(detail="Invalid token - user not active")

    return Principal(
        user_id=user.id,
        is_admin=user.id in settings.SITE_ADMINS,
        service=record.service.shortname if record.service else None,
    )


def get_current_principal(request: Request, db: Session = Depends(get_db)) -> Principal:
    """FastAPI dependency resolving the calling Principal from the request token."""
    token = extract_token(request)
    if not token:
        raise UnauthorizedException(detail="Missing web service token")

    principal = principal_from_token(token, db)
    logger.debug(f"Authenticated user {principal.user_id} for service {principal.service}")
    return principal
