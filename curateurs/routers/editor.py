from fastapi import APIRouter, Depends

from ..navigation import build_menu
from ..schemas import EditorSession, MenuItemRead
from ..utils import get_editor_session

router = APIRouter(prefix="/api/editor", tags=["editor"])


@router.get("/menu", response_model=list[MenuItemRead])
async def editor_menu(session: EditorSession = Depends(get_editor_session)):
    return [
        MenuItemRead(permission=item.permission, label=item.label, path=item.path)
        for item in build_menu(session.role, session.permissions)
    ]
