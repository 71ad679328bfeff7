from typing import Optional
from pydantic import BaseModel


class Principal(BaseModel):
    """
    The explicit identity of the caller.

    Passed into every projection function; nothing reads the caller from
    ambient request state.
    """

    user_id: Optional[int] = None
    is_admin: bool = False
    # Shortname of the external service the caller's token belongs to
    service: Optional[str] = None

    def get_user_id_or_throw(self) -> int:
        if self.user_id is None:
            from somapi_backend.exceptions import UnauthorizedException
            raise UnauthorizedException()
        return self.user_id
