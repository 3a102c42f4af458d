from contextlib import contextmanager
import os
from pathlib import Path
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///data/pharmacy.db")


def _ensure_sqlite_dir(url: str) -> None:
    # Ensure sqlite file parent directory exists to avoid 'unable to open database file'
    if url.startswith("sqlite:///") and ":memory:" not in url:
        db_path = url.split("sqlite:///")[-1]
        try:
            parent = Path(db_path).expanduser().resolve().parent
            parent.mkdir(parents=True, exist_ok=True)
        except OSError:
            # best-effort; real error will surface on connect if still invalid
            pass


def make_engine(url: str):
    _ensure_sqlite_dir(url)
    if url.startswith("sqlite") and ":memory:" in url:
        # one shared connection so every session sees the same in-memory database
        return create_engine(
            url,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, future=True)


def make_session_factory(url: str):
    """Build a `get_session`-style context manager bound to its own engine."""
    engine = make_engine(url)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)

    @contextmanager
    def session_scope():
        session = factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    session_scope.engine = engine
    return session_scope


def init_db(session_factory) -> None:
    from ..models.base import Base
    from ..models import order, order_item, product  # noqa: F401  register tables

    Base.metadata.create_all(session_factory.engine)


get_session = make_session_factory(DATABASE_URL)
