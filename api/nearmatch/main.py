import logging
import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from .config import LOG_LEVEL
from .database import build_engine, build_session_factory, init_db
from .deps import build_services
from .errors import MatchError
from .http_helpers import match_error_handler
from .routes import include_modular_routers

ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def wait_for_db(session_factory, max_attempts: int = 20, delay_seconds: float = 1.5) -> None:
    last_err: Exception | None = None
    for _ in range(max_attempts):
        try:
            with session_factory() as db:
                db.execute(text("SELECT 1"))
                db.commit()
            return
        except OperationalError as exc:
            last_err = exc
            time.sleep(delay_seconds)
    if last_err:
        raise last_err


def create_app(engine=None, session_factory=None, *, request_timeout_seconds: float | None = None) -> FastAPI:
    if session_factory is None:
        engine = engine if engine is not None else build_engine()
        session_factory = build_session_factory(engine)

    app = FastAPI(title="Nearmatch API")
    app.state.services = build_services(session_factory, request_timeout_seconds=request_timeout_seconds)
    app.add_exception_handler(MatchError, match_error_handler)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    include_modular_routers(app)

    @app.on_event("startup")
    def on_startup() -> None:
        if engine is None:
            return
        wait_for_db(session_factory)
        init_db(engine)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


configure_logging()
app = create_app()
