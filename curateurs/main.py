import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .background import drain
from .database import init_db
from .errors import ServiceError
from .routers import admin_users, articles, editor, search
from .schemas import ActionResult, UserCreate, UserRead, UserUpdate
from .services.users import bootstrap_admin
from .settings.config import settings
from .users import auth_backend, fastapi_users

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="Les Curateurs")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Update for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ----------------------
# Route Includes
# ----------------------
app.include_router(articles.router)
app.include_router(search.router)
app.include_router(admin_users.router)
app.include_router(editor.router)

# Authentication Routes
app.include_router(
    fastapi_users.get_auth_router(auth_backend),
    prefix="/auth/jwt",
    tags=["auth"]
)
app.include_router(
    fastapi_users.get_register_router(UserRead, UserCreate),
    prefix="/auth",
    tags=["auth"]
)
app.include_router(
    fastapi_users.get_verify_router(UserRead),
    prefix="/auth",
    tags=["auth"]
)
app.include_router(
    fastapi_users.get_reset_password_router(),
    prefix="/auth",
    tags=["auth"]
)
app.include_router(
    fastapi_users.get_users_router(UserRead, UserUpdate),
    prefix="/users",
    tags=["users"]
)


# -----------------------------------------------------
# Service errors that escape a read helper become an envelope
# -----------------------------------------------------
@app.exception_handler(ServiceError)
async def _service_error_handler(request: Request, exc: ServiceError):
    logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.status, exc.message)
    result = ActionResult.failure(exc)
    return JSONResponse(result.model_dump(by_alias=True), status_code=result.status)


@app.on_event("startup")
async def on_startup():
    await init_db()
    await bootstrap_admin()


@app.on_event("shutdown")
async def on_shutdown():
    await drain(timeout=10)
