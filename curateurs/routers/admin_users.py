from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas import ActionResult, AdminUserCreate, AdminUserUpdate, EditorSession, UserRead
from ..services import users as user_service
from ..utils import require_permission

router = APIRouter(prefix="/api/admin/users", tags=["admin", "users"])


def _envelope(result: ActionResult) -> JSONResponse:
    return JSONResponse(result.model_dump(by_alias=True), status_code=result.status)


@router.get("")
async def list_users(
    db: AsyncSession = Depends(get_db),
    admin: EditorSession = Depends(require_permission("update:user")),
):
    users = await user_service.get_all_users(db)
    if isinstance(users, ActionResult):
        return _envelope(users)
    return [UserRead.model_validate(u, from_attributes=True).model_dump(mode="json") for u in users]


@router.post("")
async def create_user(
    payload: AdminUserCreate,
    db: AsyncSession = Depends(get_db),
    admin: EditorSession = Depends(require_permission("create:user")),
):
    return _envelope(await user_service.create_user(db, payload))


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    payload: AdminUserUpdate,
    db: AsyncSession = Depends(get_db),
    admin: EditorSession = Depends(require_permission("update:user")),
):
    # permissions always follow the submitted role
    payload = payload.model_copy(update={"id": user_id, "permissions": None})
    return _envelope(await user_service.update_user(db, payload))


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    admin: EditorSession = Depends(require_permission("delete:user")),
):
    return _envelope(await user_service.delete_user(db, user_id))
