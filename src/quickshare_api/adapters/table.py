"""
Posts table adapters.

The hosted table is reached over its PostgREST-style REST interface in
aws-prod; local modes keep the same rows in a SQLite file.
"""

import logging
import re
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from quickshare_api.config.settings import Settings
from quickshare_api.exceptions import BackendError, NotFoundError

logger = logging.getLogger(__name__)

COLUMNS = ("id", "title", "content", "created_at", "updated_at")
MUTABLE_COLUMNS = ("title", "content", "updated_at")
_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class BasePostsTable:
    """Base class for the posts table (to be extended by specific implementations)"""

    def select_all(self) -> List[Dict[str, Any]]:
        """All rows, newest ``created_at`` first."""
        raise NotImplementedError

    def get(self, post_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def insert(self, row: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def update(self, post_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def delete(self, post_id: str) -> None:
        raise NotImplementedError

    def check(self) -> None:
        """Raise ``BackendError`` unless the table answers."""
        self.select_all()


class SQLitePostsTable(BasePostsTable):
    """Keeps posts in a local SQLite file"""

    def __init__(self, db_path: str = "quickshare.db", table_name: str = "text_posts"):
        if not _IDENTIFIER.match(table_name):
            raise ValueError(f"Invalid table name: {table_name}")
        self.db_path = db_path
        self.table_name = table_name
        self._init_table()
        logger.info(f"SQLitePostsTable initialized at: {self.db_path}")

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_table(self) -> None:
        try:
            conn = self._connect()
            try:
                conn.execute(f'''
                    CREATE TABLE IF NOT EXISTS {self.table_name} (
                        id TEXT PRIMARY KEY,
                        title TEXT NOT NULL,
                        content TEXT NOT NULL DEFAULT '',
                        created_at TEXT NOT NULL,
                        updated_at TEXT NULL
                    )
                ''')
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Error creating table {self.table_name}: {e}")
            raise BackendError(str(e)) from e

    def select_all(self) -> List[Dict[str, Any]]:
        try:
            conn = self._connect()
            try:
                cursor = conn.execute(
                    f'SELECT {", ".join(COLUMNS)} FROM {self.table_name} '
                    'ORDER BY created_at DESC, rowid DESC'
                )
                return [dict(row) for row in cursor.fetchall()]
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Error selecting from {self.table_name}: {e}")
            raise BackendError(str(e)) from e

    def get(self, post_id: str) -> Optional[Dict[str, Any]]:
        try:
            conn = self._connect()
            try:
                cursor = conn.execute(
                    f'SELECT {", ".join(COLUMNS)} FROM {self.table_name} WHERE id = ?',
                    (post_id,)
                )
                row = cursor.fetchone()
                return dict(row) if row else None
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Error reading post {post_id}: {e}")
            raise BackendError(str(e)) from e

    def insert(self, row: Dict[str, Any]) -> Dict[str, Any]:
        post_id = uuid.uuid4().hex
        try:
            conn = self._connect()
            try:
                conn.execute(
                    f'INSERT INTO {self.table_name} (id, title, content, created_at, updated_at) '
                    'VALUES (?, ?, ?, ?, ?)',
                    (
                        post_id,
                        row["title"],
                        row.get("content", ""),
                        row.get("created_at") or utc_now(),
                        row.get("updated_at"),
                    )
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Error inserting into {self.table_name}: {e}")
            raise BackendError(str(e)) from e
        return self.get(post_id)

    def update(self, post_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        columns = [column for column in MUTABLE_COLUMNS if column in changes]
        if not columns:
            raise ValueError("Nothing to update")
        assignments = ", ".join(f"{column} = ?" for column in columns)
        try:
            conn = self._connect()
            try:
                cursor = conn.execute(
                    f'UPDATE {self.table_name} SET {assignments} WHERE id = ?',
                    (*[changes[column] for column in columns], post_id)
                )
                conn.commit()
                updated = cursor.rowcount
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Error updating post {post_id}: {e}")
            raise BackendError(str(e)) from e
        if not updated:
            raise NotFoundError(f"Post '{post_id}' not found")
        return self.get(post_id)

    def delete(self, post_id: str) -> None:
        try:
            conn = self._connect()
            try:
                cursor = conn.execute(f'DELETE FROM {self.table_name} WHERE id = ?', (post_id,))
                conn.commit()
                deleted = cursor.rowcount
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Error deleting post {post_id}: {e}")
            raise BackendError(str(e)) from e
        if not deleted:
            raise NotFoundError(f"Post '{post_id}' not found")


class RestPostsTable(BasePostsTable):
    """HTTP client for a PostgREST-style table endpoint."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        table_name: str = "text_posts",
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the REST table client.

        Args:
            base_url: Root URL of the hosted backend
            api_key: Key sent as both ``apikey`` and bearer token
            table_name: Table holding the posts
            timeout: Request timeout in seconds
            session: Optional pre-built session
        """
        self.url = f"{base_url.rstrip('/')}/rest/v1/{table_name}"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        })
        logger.info(f"RestPostsTable initialized for {self.url}")

    @staticmethod
    def _error_message(response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason or f"HTTP {response.status_code}"
        if isinstance(body, dict):
            return body.get("message") or body.get("error") or str(body)
        return str(body)

    def _request(self, method: str, params: Optional[Dict[str, str]] = None, json: Any = None) -> List[Dict[str, Any]]:
        try:
            response = self.session.request(
                method, self.url, params=params, json=json, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"{method} {self.url} failed: {e}")
            raise BackendError(str(e)) from e

        if not response.ok:
            message = self._error_message(response)
            logger.error(f"{method} {self.url} returned {response.status_code}: {message}")
            raise BackendError(message)

        if not response.content:
            return []
        return response.json()

    def select_all(self) -> List[Dict[str, Any]]:
        return self._request("GET", params={"select": "*", "order": "created_at.desc"})

    def get(self, post_id: str) -> Optional[Dict[str, Any]]:
        rows = self._request("GET", params={"select": "*", "id": f"eq.{post_id}"})
        return rows[0] if rows else None

    def insert(self, row: Dict[str, Any]) -> Dict[str, Any]:
        rows = self._request("POST", json=[row])
        return rows[0]

    def update(self, post_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        rows = self._request("PATCH", params={"id": f"eq.{post_id}"}, json=changes)
        if not rows:
            raise NotFoundError(f"Post '{post_id}' not found")
        return rows[0]

    def delete(self, post_id: str) -> None:
        rows = self._request("DELETE", params={"id": f"eq.{post_id}"})
        if not rows:
            raise NotFoundError(f"Post '{post_id}' not found")

    def check(self) -> None:
        self._request("GET", params={"select": "id", "limit": "1"})


class TableFactory:
    """Factory to initialize the correct posts table based on deployment mode"""

    @staticmethod
    def get_table(settings: Settings) -> BasePostsTable:
        deployment_mode = settings.deployment_mode

        if deployment_mode in ("local-dev", "aws-mock"):
            logger.info(f"Creating SQLite posts table for mode: {deployment_mode}")
            return SQLitePostsTable(settings.sqlite_db_path, settings.posts_table)

        if deployment_mode == "aws-prod":
            if not settings.backend_url or not settings.table_api_key:
                raise ValueError("backend_url and a backend key are required in aws-prod mode")
            logger.info(f"Creating REST posts table for mode: {deployment_mode}")
            return RestPostsTable(
                settings.backend_url,
                settings.table_api_key,
                table_name=settings.posts_table,
                timeout=settings.request_timeout_seconds,
            )

        raise ValueError(
            f"Invalid deployment_mode: {deployment_mode}. "
            f"Choose from ['local-dev', 'aws-mock', 'aws-prod']"
        )
