from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from presence.config import Settings
from presence.database import create_store
from presence.errors import PresenceError
from presence.face_engine import MockFaceVerifier
from presence.routes.accounts import router as accounts_router
from presence.routes.accounts import students_router
from presence.routes.admin import router as admin_router
from presence.routes.attendance import router as attendance_router
from presence.routes.classes import router as classes_router
from presence.routes.demo import MockRoster, handler_router, roster_router
from presence.utils.logger import configure_logging, logger


def create_app(settings: Settings = None, store=None, verifier=None) -> FastAPI:
    """
    Build the API. ``store`` and ``verifier`` default to what the settings
    describe; the store is only created at startup when none was passed in.
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("🚀 Starting Presence+ API")
        if app.state.store is None:
            app.state.store = create_store(settings)
        yield
        logger.info("🛑 Shutting down")

    app = FastAPI(title="Presence+ Attendance API", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.verifier = verifier or MockFaceVerifier(delay=settings.face_verify_delay)
    app.state.roster = MockRoster()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(PresenceError)
    async def presence_error_handler(request: Request, exc: PresenceError):
        if exc.category == "backend":
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc)
        else:
            logger.warning(f"{request.method} {request.url.path}: {exc.title} - {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    # Healthcheck endpoint
    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(accounts_router)
    app.include_router(students_router)
    app.include_router(classes_router)
    app.include_router(attendance_router)
    app.include_router(admin_router)

    # Demo endpoints from the two standalone servers
    app.include_router(handler_router)
    app.include_router(roster_router)

    return app


_settings = Settings.from_env()
configure_logging(_settings.log_dir, _settings.log_level)
app = create_app(_settings)
