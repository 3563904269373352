"""
Repository pattern for data access.

Handles the durable cache table and the per-session project table.
"""

import json
import logging
import uuid
from typing import Callable, List, Optional

from .db import DEFAULT_DB_PATH, get_connection
from .models import CacheEntry, ProjectRecord, ProjectSummary
from volcano_studio.config.loader import DEFAULT_FEATURES, FeatureConfig
from volcano_studio.core.document import PromptDocument
from volcano_studio.core.errors import AdmissionDenied, ValidationError
from volcano_studio.core.rate_limiter import RateLimiter, now_ms

logger = logging.getLogger(__name__)

MAX_PROJECT_NAME = 60
DEFAULT_PROJECT_LIMIT = 50


def initialize_schema(db_path: str = DEFAULT_DB_PATH) -> None:
    """Create the cache and projects tables if they don't exist.

    Args:
        db_path: Path to SQLite database file
    """
    conn = get_connection(db_path)
    try:
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS cache (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                created_at INTEGER NOT NULL
            );

            CREATE TABLE IF NOT EXISTS projects (
                id TEXT PRIMARY KEY,
                session_id TEXT NOT NULL,
                name TEXT NOT NULL,
                payload TEXT NOT NULL,
                updated_at INTEGER NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_projects_session ON projects(session_id);
        """)
        conn.commit()
    finally:
        conn.close()


class SqliteCacheStore:
    """Durable store behind TTLCache.

    Rows are only ever upserted. Stale rows stay until the next successful
    fetch for the same key overwrites them.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        self.db_path = db_path

    def read(self, key: str) -> Optional[CacheEntry]:
        conn = get_connection(self.db_path)
        try:
            row = conn.execute(
                "SELECT key, value, created_at FROM cache WHERE key = ?", (key,)
            ).fetchone()
        finally:
            conn.close()
        if row is None:
            return None
        return CacheEntry(key=row[0], value=row[1], written_at=row[2])

    def write(self, entry: CacheEntry) -> None:
        conn = get_connection(self.db_path)
        try:
            conn.execute("""
                INSERT INTO cache (key, value, created_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    created_at = excluded.created_at
            """, (entry.key, entry.value, entry.written_at))
            conn.commit()
        finally:
            conn.close()

    def count(self) -> int:
        conn = get_connection(self.db_path)
        try:
            return conn.execute("SELECT COUNT(*) FROM cache").fetchone()[0]
        finally:
            conn.close()


class ProjectRepository:
    """Saved prompt documents, scoped to an opaque session id.

    A session can only see, overwrite or delete its own projects, and saves
    are admitted per session through the ``projects`` rate limit.
    """

    def __init__(
        self,
        db_path: str = DEFAULT_DB_PATH,
        clock: Optional[Callable[[], int]] = None,
        limiter: Optional[RateLimiter] = None,
        save_limit: Optional[FeatureConfig] = None,
    ):
        """Initialize the repository with a database path.

        Args:
            db_path: Path to SQLite database file
            clock: Epoch-millisecond clock, defaults to wall time
            limiter: Shared rate limiter; a private one is created if None
            save_limit: Admission window for saves, defaults to the built-in
                ``projects`` limit
        """
        self.db_path = db_path
        self._clock = clock or now_ms
        self.limiter = limiter or RateLimiter(clock=self._clock)
        self.save_limit = save_limit or DEFAULT_FEATURES["projects"]

    def save_project(
        self,
        session_id: str,
        name: str,
        document: PromptDocument,
        project_id: Optional[str] = None,
    ) -> str:
        """Insert or update a project.

        Args:
            session_id: Owning session
            name: Display name, 1 to 60 characters
            document: Document to store
            project_id: Existing id to overwrite; a new id is generated if None

        Returns:
            The project id

        Raises:
            AdmissionDenied: If the session exhausted its save window
            ValidationError: If the name is empty or too long
        """
        admission = self.limiter.admit(
            f"projects:{session_id}", self.save_limit.window_ms, self.save_limit.max_requests
        )
        if not admission.allowed:
            logger.info("rate limit hit for projects by %s", session_id)
            raise AdmissionDenied("projects", admission.reset_at)

        name = (name or "").strip()
        if not name or len(name) > MAX_PROJECT_NAME:
            raise ValidationError(f"project name must be 1-{MAX_PROJECT_NAME} characters")

        project_id = project_id or str(uuid.uuid4())
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute("""
                INSERT INTO projects (id, session_id, name, payload, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    payload = excluded.payload,
                    updated_at = excluded.updated_at
                WHERE projects.session_id = excluded.session_id
            """, (project_id, session_id, name, json.dumps(document.to_dict()), self._clock()))
            conn.commit()
            written = cursor.rowcount
        finally:
            conn.close()

        if written == 0:
            raise ValidationError(f"project {project_id} belongs to another session")
        logger.debug("saved project %s for session %s", project_id, session_id)
        return project_id

    def list_projects(self, session_id: str, limit: int = DEFAULT_PROJECT_LIMIT) -> List[ProjectSummary]:
        """Return the session's projects, most recently updated first."""
        conn = get_connection(self.db_path)
        try:
            rows = conn.execute("""
                SELECT id, name, updated_at FROM projects
                WHERE session_id = ?
                ORDER BY updated_at DESC
                LIMIT ?
            """, (session_id, limit)).fetchall()
        finally:
            conn.close()
        return [ProjectSummary(id=row[0], name=row[1], updated_at=row[2]) for row in rows]

    def get_project(self, session_id: str, project_id: str) -> Optional[ProjectRecord]:
        conn = get_connection(self.db_path)
        try:
            row = conn.execute("""
                SELECT id, session_id, name, payload, updated_at FROM projects
                WHERE id = ? AND session_id = ?
            """, (project_id, session_id)).fetchone()
        finally:
            conn.close()
        if row is None:
            return None
        return ProjectRecord(
            id=row[0],
            session_id=row[1],
            name=row[2],
            payload=json.loads(row[3]),
            updated_at=row[4],
        )

    def load_document(self, session_id: str, project_id: str) -> Optional[PromptDocument]:
        record = self.get_project(session_id, project_id)
        if record is None:
            return None
        return PromptDocument.from_dict(record.payload)

    def delete_project(self, session_id: str, project_id: str) -> bool:
        """Delete a project; returns False if the session doesn't own it."""
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute(
                "DELETE FROM projects WHERE id = ? AND session_id = ?",
                (project_id, session_id),
            )
            conn.commit()
            deleted = cursor.rowcount
        finally:
            conn.close()
        return deleted > 0
