import logging
import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from .config import LOG_LEVEL
from .database import Base, SessionLocal, engine
from . import models  # noqa: F401  registers tables on Base.metadata
from .routes import include_modular_routers

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Campus Match API")
include_modular_routers(app)

ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def wait_for_db(max_attempts: int = 20, delay_seconds: float = 1.5) -> None:
    last_err: Exception | None = None
    for _ in range(max_attempts):
        try:
            with SessionLocal() as db:
                db.execute(text("SELECT 1"))
                db.commit()
            return
        except OperationalError as exc:
            last_err = exc
            time.sleep(delay_seconds)
    if last_err:
        raise last_err


def init_db(bind=None) -> None:
    Base.metadata.create_all(bind=bind or engine)


@app.on_event("startup")
def on_startup() -> None:
    wait_for_db()
    init_db()
    logger.info("[STARTUP] database ready")


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
