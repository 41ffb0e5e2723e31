from fastapi import Depends, HTTPException, status
import logging

from .models import User
from .schemas import EditorSession
from .users import current_active_user

logger = logging.getLogger(__name__)


# Dependency to build the explicit editor session for the current user
async def get_editor_session(user: User = Depends(current_active_user)) -> EditorSession:
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return EditorSession.from_user(user)


def require_permission(permission: str):
    """Dependency factory: the session must hold ``permission`` (e.g. ``"ship:articles"``)."""

    async def _checker(session: EditorSession = Depends(get_editor_session)) -> EditorSession:
        if not session.can(permission):
            logger.info("User %s denied %s", session.user_id, permission)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Permission required: {permission}")
        return session

    return _checker
