"""
Workspace Store

Serializes the whole workspace into one string slot of a key-value store.
The durable backend is a single SQLite table via SQLAlchemy; an in-memory
backend serves tests and throwaway sessions.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol
from urllib.parse import unquote

from pydantic import ValidationError as SchemaError
from sqlalchemy import DateTime, String, Text, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from timetally.timer.errors import PersistenceUnavailable
from timetally.timer.models import Workspace
from timetally.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SLOT_KEY = "timeTallyData"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all tables."""
    pass


class Slot(Base):
    """One named text value."""
    __tablename__ = "slots"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, onupdate=_utcnow
    )

    def __repr__(self) -> str:
        return f"<Slot {self.key!r} ({len(self.value)} chars)>"


class SlotStore(Protocol):
    """A string-keyed store of string values."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemorySlotStore:
    """Dict-backed slots that live as long as the process."""

    def __init__(self) -> None:
        self.slots: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.slots.get(key)

    def set(self, key: str, value: str) -> None:
        self.slots[key] = value


class SqliteSlotStore:
    """
    SQLite-backed slots.

    Every SQLAlchemy failure surfaces as ``PersistenceUnavailable``.
    """

    def __init__(self, db_path: Optional[str] = None, echo: bool = False):
        """
        Initialize the store.

        Args:
            db_path: Path to SQLite database. Defaults to ~/.timetally/timetally.db
        """
        if db_path is None:
            db_dir = Path.home() / ".timetally"
            db_dir.mkdir(parents=True, exist_ok=True)
            db_path = str(db_dir / "timetally.db")
        else:
            try:
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise PersistenceUnavailable(f"Cannot create directory for {db_path}: {e}") from e

        self.db_path = db_path
        self.engine = create_engine(f"sqlite:///{db_path}", echo=echo)
        self.SessionLocal = sessionmaker(bind=self.engine)

        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise PersistenceUnavailable(f"Cannot open {db_path}: {e}") from e

    def _get_session(self) -> Session:
        """Get a new database session."""
        return self.SessionLocal()

    def get(self, key: str) -> Optional[str]:
        try:
            with self._get_session() as session:
                slot = session.get(Slot, key)
                return slot.value if slot else None
        except SQLAlchemyError as e:
            raise PersistenceUnavailable(str(e)) from e

    def set(self, key: str, value: str) -> None:
        try:
            with self._get_session() as session:
                slot = session.get(Slot, key)
                if slot:
                    slot.value = value
                else:
                    session.add(Slot(key=key, value=value))
                session.commit()
        except SQLAlchemyError as e:
            raise PersistenceUnavailable(str(e)) from e

    def close(self) -> None:
        self.engine.dispose()


class WorkspaceCodec:
    """JSON encoding of a workspace, tolerant of bad input on the way in."""

    @staticmethod
    def save(workspace: Workspace) -> str:
        return workspace.model_dump_json(by_alias=True)

    @staticmethod
    def load(token: Optional[str]) -> Workspace:
        """
        Decode a workspace.

        Missing or malformed input yields the default workspace; structural
        gaps (configs, list order, current list) are repaired.
        """
        if not token or not token.strip():
            return Workspace.default()

        text = token.strip()
        if not text.startswith("{"):
            # Percent-encoded, as browser cookies store it
            text = unquote(text)

        try:
            data = json.loads(text)
            workspace = Workspace.model_validate(data or {})
        except (json.JSONDecodeError, SchemaError, TypeError) as e:
            logger.warning("workspace_malformed", error=str(e)[:200])
            return Workspace.default()

        fixes = workspace.repair()
        if fixes:
            logger.info("workspace_repaired", fixes=fixes)
        return workspace


class WorkspaceStore:
    """
    Loads and saves the workspace in one slot.

    Writes are fire-and-forget: failures and oversized payloads are logged
    and the in-memory workspace stays authoritative.
    """

    def __init__(
        self,
        slots: SlotStore,
        key: str = DEFAULT_SLOT_KEY,
        max_bytes: int = 0,
    ):
        self.slots = slots
        self.key = key
        self.max_bytes = max_bytes

    def load(self) -> Workspace:
        try:
            raw = self.slots.get(self.key)
        except PersistenceUnavailable as e:
            logger.warning("workspace_load_failed", error=str(e))
            raw = None

        workspace = WorkspaceCodec.load(raw)
        logger.debug("workspace_loaded", lists=len(workspace.lists), current=workspace.current_list)
        return workspace

    def save(self, workspace: Workspace) -> bool:
        payload = WorkspaceCodec.save(workspace)
        size = len(payload.encode("utf-8"))
        if self.max_bytes and size > self.max_bytes:
            logger.warning("workspace_too_large", size=size, max_bytes=self.max_bytes)
            return False

        try:
            self.slots.set(self.key, payload)
        except PersistenceUnavailable as e:
            logger.warning("workspace_save_failed", error=str(e))
            return False

        logger.debug("workspace_saved", size=size)
        return True
