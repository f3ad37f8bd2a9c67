# db.py
import os

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

load_dotenv()

DB_URL = os.getenv("DATABASE_URL", "sqlite:///fantasy_dashboard.db")
DB_AUTH_TOKEN = os.getenv("DATABASE_AUTH_TOKEN")


def _engine_kwargs(url: str) -> dict:
    kwargs = {"future": True, "echo": False}
    connect_args = {}

    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        # in-memory databases only exist per-connection; share one
        if ":memory:" in url or url.rstrip("/") == "sqlite:":
            kwargs["poolclass"] = StaticPool

    # hosted libSQL / Turso URLs carry the auth token as a connect arg
    if DB_AUTH_TOKEN:
        connect_args["auth_token"] = DB_AUTH_TOKEN

    if connect_args:
        kwargs["connect_args"] = connect_args
    return kwargs


engine = create_engine(DB_URL, **_engine_kwargs(DB_URL))
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

Base = declarative_base()


def init_db():
    # Ensure models are registered with Base metadata
    import models_normalized  # noqa: F401
    import models_aggregates  # noqa: F401

    Base.metadata.create_all(bind=engine)
