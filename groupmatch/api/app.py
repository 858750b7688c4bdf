"""
FastAPI app
"""

from importlib.metadata import version

from fastapi import FastAPI

from groupmatch.config.settings import Settings
from groupmatch.service.registry import build_registry

from .dependencies import SETTINGS, logger
from .groups import group_app
from .handlers import add_exception_handlers
from .logging import add_request_logging
from .media import media_app
from .users import user_app


async def lifespan(app: FastAPI):
    if app.state.settings.create_tables_on_startup:
        await app.state.database_manager.create_all()
        await logger().ainfo("api.tables_created")

    yield

    await app.state.database_manager.engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the application. The settings, database manager and operation
    registry are created here, once, and shared by every request.
    """
    settings = settings or SETTINGS()

    app = FastAPI(
        lifespan=lifespan,
        title="groupmatch API",
        summary="Groups of users voting on media, and the media they agree on.",
        version=version("groupmatch"),
    )

    app.state.settings = settings
    app.state.database_manager = settings.async_manager()
    app.state.registry = build_registry()

    app = add_exception_handlers(app)
    app = add_request_logging(app)

    app.include_router(group_app, prefix="/groups")
    app.include_router(user_app, prefix="/users")
    app.include_router(media_app, prefix="/media")

    return app


app = create_app()
