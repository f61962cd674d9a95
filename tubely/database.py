"""SQLite storage for users, refresh tokens and videos."""

from __future__ import annotations

import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    password TEXT NOT NULL,
    email TEXT UNIQUE NOT NULL
);
CREATE TABLE IF NOT EXISTS refresh_tokens (
    token TEXT PRIMARY KEY,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    revoked_at TIMESTAMP,
    user_id TEXT NOT NULL,
    expires_at TIMESTAMP NOT NULL,
    FOREIGN KEY(user_id) REFERENCES users(id)
);
CREATE TABLE IF NOT EXISTS videos (
    id TEXT PRIMARY KEY,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    title TEXT NOT NULL,
    description TEXT,
    thumbnail_url TEXT,
    video_url TEXT,
    user_id INTEGER,
    FOREIGN KEY(user_id) REFERENCES users(id)
);
"""

_VIDEO_COLUMNS = (
    "id, created_at, updated_at, title, description, thumbnail_url, video_url, user_id"
)


@dataclass
class User:
    """A registered user; the password field holds the password hash."""

    id: uuid.UUID
    created_at: datetime | None
    updated_at: datetime | None
    email: str
    password: str


@dataclass
class Video:
    """Metadata of one uploaded video."""

    id: uuid.UUID
    created_at: datetime | None
    updated_at: datetime | None
    thumbnail_url: str | None
    video_url: str | None
    title: str
    description: str
    user_id: uuid.UUID | None


@dataclass
class RefreshToken:
    """A stored refresh token."""

    token: str
    user_id: uuid.UUID
    expires_at: datetime | None
    created_at: datetime | None
    updated_at: datetime | None
    revoked_at: datetime | None


def _parse_time(value: Any) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _format_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(sep=" ")


def _parse_uuid(value: Any) -> uuid.UUID | None:
    if value is None:
        return None
    return uuid.UUID(str(value))


def _row_to_video(row: sqlite3.Row) -> Video:
    return Video(
        id=uuid.UUID(row["id"]),
        created_at=_parse_time(row["created_at"]),
        updated_at=_parse_time(row["updated_at"]),
        thumbnail_url=row["thumbnail_url"],
        video_url=row["video_url"],
        title=row["title"],
        description=row["description"],
        user_id=_parse_uuid(row["user_id"]),
    )


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        id=uuid.UUID(row["id"]),
        created_at=_parse_time(row["created_at"]),
        updated_at=_parse_time(row["updated_at"]),
        email=row["email"],
        password=row["password"],
    )


class Database:
    """A connection to the SQLite database; creates the tables on open."""

    def __init__(self, path):
        self._conn = sqlite3.connect(
            str(path), isolation_level=None, check_same_thread=False
        )
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def reset(self) -> None:
        """Delete every row of every table."""
        for table in ("refresh_tokens", "users", "videos"):
            try:
                self._conn.execute(f"DELETE FROM {table}")
            except sqlite3.Error as exc:
                raise sqlite3.DatabaseError(
                    f"failed to reset table {table}: {exc}"
                ) from exc

    # Refresh tokens

    def create_refresh_token(self, token, user_id, expires_at) -> RefreshToken | None:
        self._conn.execute(
            """
            INSERT INTO refresh_tokens (token, created_at, updated_at, user_id, expires_at)
            VALUES (?, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP, ?, ?)
            """,
            (token, str(user_id), _format_time(expires_at)),
        )
        return self.get_refresh_token(token)

    def revoke_refresh_token(self, token) -> None:
        self._conn.execute(
            "UPDATE refresh_tokens SET revoked_at = CURRENT_TIMESTAMP WHERE token = ?",
            (token,),
        )

    def get_refresh_token(self, token) -> RefreshToken | None:
        row = self._conn.execute(
            """
            SELECT token, created_at, updated_at, user_id, expires_at, revoked_at
            FROM refresh_tokens WHERE token = ?
            """,
            (token,),
        ).fetchone()
        if row is None:
            return None
        return RefreshToken(
            token=row["token"],
            user_id=uuid.UUID(row["user_id"]),
            expires_at=_parse_time(row["expires_at"]),
            created_at=_parse_time(row["created_at"]),
            updated_at=_parse_time(row["updated_at"]),
            revoked_at=_parse_time(row["revoked_at"]),
        )

    def delete_refresh_token(self, token) -> None:
        self._conn.execute("DELETE FROM refresh_tokens WHERE token = ?", (token,))

    # Users

    def get_users(self) -> list[User]:
        """Return every user with only the id and e-mail filled in."""
        rows = self._conn.execute("SELECT id, email FROM users").fetchall()
        return [
            User(
                id=uuid.UUID(row["id"]),
                created_at=None,
                updated_at=None,
                email=row["email"],
                password="",
            )
            for row in rows
        ]

    def get_user_by_email(self, email) -> User | None:
        row = self._conn.execute(
            "SELECT id, created_at, updated_at, email, password FROM users WHERE email = ?",
            (email,),
        ).fetchone()
        return None if row is None else _row_to_user(row)

    def get_user_by_refresh_token(self, token) -> User | None:
        row = self._conn.execute(
            """
            SELECT u.id, u.email, u.created_at, u.updated_at, u.password
            FROM users u
            JOIN refresh_tokens rt ON u.id = rt.user_id
            WHERE rt.token = ?
            """,
            (token,),
        ).fetchone()
        return None if row is None else _row_to_user(row)

    def create_user(self, email, password) -> User | None:
        user_id = uuid.uuid4()
        self._conn.execute(
            """
            INSERT INTO users (id, created_at, updated_at, email, password)
            VALUES (?, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP, ?, ?)
            """,
            (str(user_id), email, password),
        )
        return self.get_user(user_id)

    def get_user(self, user_id) -> User | None:
        row = self._conn.execute(
            "SELECT id, created_at, updated_at, email, password FROM users WHERE id = ?",
            (str(user_id),),
        ).fetchone()
        return None if row is None else _row_to_user(row)

    def delete_user(self, user_id) -> None:
        self._conn.execute("DELETE FROM users WHERE id = ?", (str(user_id),))

    # Videos

    def get_videos(self, user_id) -> list[Video]:
        """Return a user's videos, newest first."""
        rows = self._conn.execute(
            f"SELECT {_VIDEO_COLUMNS} FROM videos WHERE user_id = ? ORDER BY created_at DESC",
            (str(user_id),),
        ).fetchall()
        return [_row_to_video(row) for row in rows]

    def create_video(self, title, description, user_id) -> Video | None:
        video_id = uuid.uuid4()
        self._conn.execute(
            """
            INSERT INTO videos (id, created_at, updated_at, title, description, user_id)
            VALUES (?, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP, ?, ?, ?)
            """,
            (str(video_id), title, description, str(user_id)),
        )
        return self.get_video(video_id)

    def get_video(self, video_id) -> Video | None:
        row = self._conn.execute(
            f"SELECT {_VIDEO_COLUMNS} FROM videos WHERE id = ?", (str(video_id),)
        ).fetchone()
        return None if row is None else _row_to_video(row)

    def update_video(self, video: Video) -> None:
        self._conn.execute(
            """
            UPDATE videos
            SET title = ?, description = ?, thumbnail_url = ?, video_url = ?, user_id = ?
            WHERE id = ?
            """,
            (
                video.title,
                video.description,
                video.thumbnail_url,
                video.video_url,
                None if video.user_id is None else str(video.user_id),
                str(video.id),
            ),
        )

    def delete_video(self, video_id) -> None:
        self._conn.execute("DELETE FROM videos WHERE id = ?", (str(video_id),))