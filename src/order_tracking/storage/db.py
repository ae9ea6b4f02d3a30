from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional
import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .tables import Base

DEFAULT_DATABASE_URL = "sqlite:///order_tracking.sqlite"


def normalize_url(url: Optional[str]) -> str:
    """Strip surrounding quotes some env files leave on the value; default to SQLite."""
    raw = (url or "").strip()
    if (raw.startswith('"') and raw.endswith('"')) or (raw.startswith("'") and raw.endswith("'")):
        raw = raw[1:-1].strip()
    if not raw:
        return DEFAULT_DATABASE_URL
    if raw.startswith("postgres://"):
        return raw.replace("postgres://", "postgresql://", 1)
    return raw


class Database:
    """Engine + session factory for the settings/analytics store."""

    def __init__(self, url: Optional[str] = None, *, echo: bool = False, create: bool = True) -> None:
        self.url = normalize_url(url)
        self.logger = logging.getLogger("order_tracking.storage.db")
        self.engine: Engine = create_engine(self.url, echo=echo, future=True, pool_pre_ping=True)
        self._sessions = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)
        if create:
            self.create_all()

    @classmethod
    def sqlite_file(cls, path: Path | str, **kwargs) -> "Database":
        return cls(f"sqlite:///{Path(path)}", **kwargs)

    def create_all(self) -> None:
        Base.metadata.create_all(self.engine)
        self.logger.debug("Tables ready on %s", self.engine.url.render_as_string(hide_password=True))

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Transactional scope: commit on success, rollback and re-raise on error."""
        s = self._sessions()
        try:
            yield s
            s.commit()
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()

    def dispose(self) -> None:
        self.engine.dispose()
