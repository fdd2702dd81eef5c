"""
FastAPI app
"""

from importlib.metadata import version

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from .actions import action_app
from .dependencies import DATABASE_MANAGER, SETTINGS
from .errors import add_exception_handlers
from .groups import group_app
from .setup import load_key_pair

settings = SETTINGS()


async def lifespan(app: FastAPI):
    app.settings = settings
    app.key_pair_type = settings.key_pair_type
    app.public_key, app.private_key = load_key_pair(settings)

    settings.banner_directory.mkdir(parents=True, exist_ok=True)

    yield

    await DATABASE_MANAGER.dispose()


app = FastAPI(
    lifespan=lifespan,
    title="Group Actions API",
    summary="API endpoints for creating and joining groups and posting actions to them.",
    version=version("groupactions"),
)

app = add_exception_handlers(app)

app.mount(
    "/uploads",
    StaticFiles(directory=settings.media_path / "uploads", check_dir=False),
    name="uploads",
)
app.include_router(group_app, prefix="/groups")
app.include_router(action_app, prefix="/groups/{group_id}/actions")
