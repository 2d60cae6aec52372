import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

from db import close_pool
from init_db import init_database
from utils import STATIC_DIR


# --- 1. Start-up / shutdown ---
# Schema is checked and migrated before the first request is served
@asynccontextmanager
async def lifespan(app: FastAPI):
    init_database()
    yield
    await close_pool()


# --- 2. Application ---
app = FastAPI(title="Freelance Tracker", lifespan=lifespan)

# --- 3. Static files (CSS, form script) ---
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

# --- 4. Session cookie (login state) ---
app.add_middleware(
    SessionMiddleware,
    secret_key=os.getenv("SECRET_KEY", "change-me-in-production"),
    max_age=int(os.getenv("SESSION_MAX_AGE", str(7 * 24 * 60 * 60))),  # 7 days
    same_site="lax",
    https_only=os.getenv("HTTPS_ONLY", "false").lower() == "true",
)

# --- 5. Routers ---
from routes.auth import router as auth_router
from routes.dashboard import router as dashboard_router
from routes.clients import router as clients_router
from routes.projects import router as projects_router
from routes.settings import router as settings_router
from routes.share import router as share_router
from routes.api import router as api_router

app.include_router(auth_router)  # /setup, /login, /logout
app.include_router(dashboard_router)  # /
app.include_router(clients_router, prefix="/clients")
app.include_router(projects_router, prefix="/projects")
app.include_router(settings_router, prefix="/settings")
app.include_router(share_router)  # /share/{token}, /portal/{token}
app.include_router(api_router, prefix="/api")
