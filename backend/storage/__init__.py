import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from models import GenerationTask, TaskStatus


class SqliteStore:
    def __init__(self, db_path: str):
        self.db_path = Path(db_path)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = sqlite3.connect(self.db_path, timeout=10.0)
        except sqlite3.OperationalError as exc:
            raise sqlite3.OperationalError(f"{exc} (db_path={self.db_path})") from exc
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        conn.execute("PRAGMA busy_timeout=10000")
        return conn

    @contextmanager
    def _connection(self):
        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()

    def _init_db(self):
        raise NotImplementedError


class GenerationTaskStore(SqliteStore):
    def _init_db(self):
        with self._connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS generation_tasks (
                    id TEXT PRIMARY KEY,
                    kind TEXT NOT NULL,
                    status TEXT NOT NULL,
                    project_id TEXT NOT NULL DEFAULT '',
                    word_count INTEGER DEFAULT 0,
                    tone TEXT,
                    used_fallback INTEGER DEFAULT 0,
                    client_timestamp TEXT,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_generation_tasks_project
                ON generation_tasks(project_id, created_at)
                """
            )
            conn.commit()

    def record(self, task: GenerationTask):
        with self._connection() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO generation_tasks
                (id, kind, status, project_id, word_count, tone, used_fallback,
                 client_timestamp, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    task.id,
                    task.kind,
                    task.status.value,
                    task.project_id,
                    task.word_count,
                    task.tone,
                    int(task.used_fallback),
                    task.client_timestamp,
                    task.created_at.isoformat(),
                ),
            )
            conn.commit()

    def get(self, task_id: str) -> Optional[GenerationTask]:
        with self._connection() as conn:
            row = conn.execute("SELECT * FROM generation_tasks WHERE id = ?", (task_id,)).fetchone()
        return self._row_to_task(row) if row else None

    def list_recent(self, limit: int = 20, project_id: Optional[str] = None) -> List[GenerationTask]:
        limit = max(1, min(int(limit), 200))
        with self._connection() as conn:
            if project_id:
                rows = conn.execute(
                    """
                    SELECT * FROM generation_tasks WHERE project_id = ?
                    ORDER BY created_at DESC LIMIT ?
                    """,
                    (project_id, limit),
                ).fetchall()
            else:
                rows = conn.execute(
                    "SELECT * FROM generation_tasks ORDER BY created_at DESC LIMIT ?",
                    (limit,),
                ).fetchall()
        return [self._row_to_task(row) for row in rows]

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> GenerationTask:
        return GenerationTask(
            id=row["id"],
            kind=row["kind"],
            status=TaskStatus(row["status"]),
            project_id=row["project_id"] or "",
            word_count=row["word_count"] or 0,
            tone=row["tone"] or "neutral",
            used_fallback=bool(row["used_fallback"]),
            client_timestamp=row["client_timestamp"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
