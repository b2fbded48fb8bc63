"""Playlist Store - ordered playlist items backed by SQL.

Items carry an explicit position; the manifest generator consumes the
active ones sorted by that position.
"""

import logging
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import QueuePool, StaticPool

from playlist_store.config import PlaylistStoreConfig

logger = logging.getLogger(__name__)

ENTRY_KINDS = ("song", "jingle", "advertisement")

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS playlist_items (
        id VARCHAR(36) PRIMARY KEY,
        title TEXT NOT NULL,
        source_uri TEXT NOT NULL,
        duration_seconds REAL NOT NULL,
        kind VARCHAR(20) NOT NULL DEFAULT 'song',
        position INTEGER NOT NULL,
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        created_at VARCHAR(32) NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_playlist_items_position "
    "ON playlist_items (position, is_active)",
)

_COLUMNS = "id, title, source_uri, duration_seconds, kind, position, is_active, created_at"


@dataclass
class PlaylistEntry:
    """One item of the station playlist."""

    id: str
    title: str
    source_uri: str
    duration_seconds: float
    order: int
    active: bool = True
    kind: str = "song"
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class PlaylistStore:
    """Playlist items persisted through SQLAlchemy.

    Example:
        >>> store = PlaylistStore(PlaylistStoreConfig.from_env())
        >>> store.add_item("Morning Jingle", "https://cdn.example.com/jingle.mp3", 12, "jingle")
        >>> [entry.title for entry in store.list_active()]
        ['Morning Jingle']
    """

    def __init__(self, config: PlaylistStoreConfig):
        """Initialize the store and make sure the schema exists.

        Args:
            config: PlaylistStoreConfig instance

        Raises:
            ValueError: If configuration is invalid
            SQLAlchemyError: If the database cannot be reached
        """
        config.validate()
        self.config = config
        self.engine: Engine = self._create_engine()
        self.initialize_schema()

        logger.info(f"PlaylistStore initialized: {config!r}")

    def _create_engine(self) -> Engine:
        """Create SQLAlchemy engine.

        SQLite gets a single shared connection for in-memory databases;
        other backends use a connection pool.
        """
        if self.config.is_sqlite:
            options: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
            if ":memory:" in self.config.database_url or self.config.database_url == "sqlite://":
                options["poolclass"] = StaticPool
            return create_engine(self.config.database_url, echo=self.config.debug, **options)

        return create_engine(
            self.config.database_url,
            poolclass=QueuePool,
            pool_size=self.config.db_pool_size,
            max_overflow=self.config.db_max_overflow,
            pool_timeout=self.config.db_pool_timeout,
            pool_recycle=self.config.db_pool_recycle,
            pool_pre_ping=True,
            echo=self.config.debug,
        )

    def initialize_schema(self) -> None:
        """Create the playlist table if it does not exist yet."""
        with self.engine.begin() as conn:
            for statement in _SCHEMA:
                conn.execute(text(statement))

    @staticmethod
    def _row_to_entry(row) -> PlaylistEntry:
        return PlaylistEntry(
            id=row.id,
            title=row.title,
            source_uri=row.source_uri,
            duration_seconds=float(row.duration_seconds),
            order=int(row.position),
            active=bool(row.is_active),
            kind=row.kind,
            created_at=row.created_at,
        )

    def add_item(
        self,
        title: str,
        source_uri: str,
        duration_seconds: float,
        kind: str = "song",
    ) -> PlaylistEntry:
        """Append an active item at the end of the playlist.

        Args:
            title: Display title
            source_uri: Remote URI or local path of the audio
            duration_seconds: Track length
            kind: One of ENTRY_KINDS

        Returns:
            The stored entry

        Raises:
            ValueError: If a field is invalid
            SQLAlchemyError: If the database operation fails
        """
        if not title or not title.strip():
            raise ValueError("title is required")
        if not source_uri or not source_uri.strip():
            raise ValueError("source_uri is required")
        if duration_seconds < 0:
            raise ValueError("duration_seconds cannot be negative")
        if kind not in ENTRY_KINDS:
            raise ValueError(f"kind must be one of: {', '.join(ENTRY_KINDS)}")

        entry_id = str(uuid.uuid4())
        created_at = datetime.now().isoformat()

        try:
            with self.engine.begin() as conn:
                next_position = conn.execute(
                    text("SELECT COALESCE(MAX(position), 0) + 1 FROM playlist_items")
                ).scalar_one()
                conn.execute(
                    text(
                        "INSERT INTO playlist_items "
                        "(id, title, source_uri, duration_seconds, kind, position, "
                        "is_active, created_at) "
                        "VALUES (:id, :title, :source_uri, :duration, :kind, :position, "
                        ":active, :created_at)"
                    ),
                    {
                        "id": entry_id,
                        "title": title.strip(),
                        "source_uri": source_uri.strip(),
                        "duration": duration_seconds,
                        "kind": kind,
                        "position": next_position,
                        "active": True,
                        "created_at": created_at,
                    },
                )
        except SQLAlchemyError as e:
            logger.error(f"Error adding playlist item '{title}': {e}")
            raise

        logger.info(f"Added playlist item #{next_position}: {title}")
        return PlaylistEntry(
            id=entry_id,
            title=title.strip(),
            source_uri=source_uri.strip(),
            duration_seconds=duration_seconds,
            order=next_position,
            active=True,
            kind=kind,
            created_at=created_at,
        )

    def list_active(self) -> List[PlaylistEntry]:
        """Active items in play order."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                text(
                    f"SELECT {_COLUMNS} FROM playlist_items "
                    "WHERE is_active = :active ORDER BY position, created_at"
                ),
                {"active": True},
            ).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def get_item(self, entry_id: str) -> Optional[PlaylistEntry]:
        """Fetch a single item by id, active or not."""
        with self.engine.connect() as conn:
            row = conn.execute(
                text(f"SELECT {_COLUMNS} FROM playlist_items WHERE id = :id"),
                {"id": entry_id},
            ).fetchone()
        return self._row_to_entry(row) if row else None

    def reorder(self, items: Sequence[Dict[str, Any]]) -> int:
        """Assign new positions in a single transaction.

        Args:
            items: Sequence of ``{"id": ..., "order": ...}`` mappings

        Returns:
            Number of items updated

        Raises:
            ValueError: If ``items`` is empty or malformed
            SQLAlchemyError: If the database operation fails
        """
        if not items:
            raise ValueError("items cannot be empty")

        params = []
        for item in items:
            try:
                params.append({"id": str(item["id"]), "position": int(item["order"])})
            except (KeyError, TypeError, ValueError) as e:
                raise ValueError(f"Invalid reorder item {item!r}: {e}") from e

        updated = 0
        try:
            with self.engine.begin() as conn:
                for param in params:
                    result = conn.execute(
                        text("UPDATE playlist_items SET position = :position WHERE id = :id"),
                        param,
                    )
                    updated += result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"Error reordering playlist: {e}")
            raise

        logger.info(f"Reordered {updated} playlist items")
        return updated

    def deactivate(self, entry_id: str) -> bool:
        """Take an item out of rotation without deleting it.

        Returns:
            True if the item existed
        """
        with self.engine.begin() as conn:
            result = conn.execute(
                text("UPDATE playlist_items SET is_active = :active WHERE id = :id"),
                {"active": False, "id": entry_id},
            )
        if result.rowcount:
            logger.info(f"Deactivated playlist item {entry_id}")
        return bool(result.rowcount)

    def close(self) -> None:
        """Dispose of the connection pool."""
        self.engine.dispose()
