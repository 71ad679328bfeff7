"""Business logic for the user projection."""
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from somapi_backend.business_logic.common import clean_ids
from somapi_backend.permissions.principal import Principal
from somapi_backend.repositories import UserRepository
from somapi_types.users import UserGet


def get_users(
    user_ids: Optional[Iterable[int]],
    permissions: Principal,
    db: Session,
) -> List[UserGet]:
    """
    Non-deleted users by id, ascending.

    There is no per-row check; access is governed by the capability required
    to call the function at all.
    """
    user_ids = clean_ids(user_ids)
    if not user_ids:
        return []

    return [
        UserGet(id=user.id, ucid=user.idnumber or "")
        for user in UserRepository(db).find_active_by_ids(user_ids)
    ]
