import sqlite3
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from tubely.database import Database, RefreshToken, User, Video

PASSWORD_HASH = "password"


@pytest.fixture
def db():
    with Database(":memory:") as database:
        yield database


@pytest.fixture
def user(db):
    return db.create_user("alice@example.com", PASSWORD_HASH)


def test_create_user_round_trip(db, user):
    assert isinstance(user, User)
    assert user.email == "alice@example.com"
    assert user.password == PASSWORD_HASH
    assert db.get_user(user.id) == user
    assert db.get_user_by_email("alice@example.com") == user
    assert user.created_at.tzinfo is not None
    assert user.created_at.utcoffset() == timedelta(0)


def test_missing_user_is_none(db, user):
    assert db.get_user(uuid.uuid4()) is None
    assert db.get_user_by_email("nobody@example.com") is None


def test_duplicate_email_rejected(db, user):
    with pytest.raises(sqlite3.IntegrityError):
        db.create_user("alice@example.com", PASSWORD_HASH)


def test_get_users_returns_ids_and_emails(db, user):
    other = db.create_user("bob@example.com", PASSWORD_HASH)
    users = db.get_users()
    assert {(u.id, u.email) for u in users} == {
        (user.id, user.email),
        (other.id, other.email),
    }
    assert all(u.password == "" and u.created_at is None for u in users)


def test_delete_user(db, user):
    db.delete_user(user.id)
    assert db.get_user(user.id) is None
    assert db.get_users() == []


def test_refresh_token_lifecycle(db, user):
    expires = datetime.now(timezone.utc) + timedelta(days=60)
    created = db.create_refresh_token("token", user.id, expires)
    assert isinstance(created, RefreshToken)
    assert created.token == "token"
    assert created.user_id == user.id
    assert created.expires_at == expires
    assert created.revoked_at is None
    assert db.get_user_by_refresh_token("token") == user

    db.revoke_refresh_token("token")
    revoked = db.get_refresh_token("token")
    assert isinstance(revoked.revoked_at, datetime)
    assert revoked.revoked_at >= created.created_at

    db.delete_refresh_token("token")
    assert db.get_refresh_token("token") is None
    assert db.get_user_by_refresh_token("token") is None


def test_video_round_trip_and_update(db, user):
    video = db.create_video("Boots", "A film about boots", user.id)
    assert isinstance(video, Video)
    assert video.title == "Boots"
    assert video.description == "A film about boots"
    assert video.user_id == user.id
    assert video.thumbnail_url is None
    assert video.video_url is None
    assert db.get_video(video.id) == video

    video.thumbnail_url = "http://localhost:8091/assets/thumb.png"
    video.video_url = "https://cdn.example.com/landscape/clip.mp4"
    db.update_video(video)
    fetched = db.get_video(video.id)
    assert fetched.thumbnail_url == video.thumbnail_url
    assert fetched.video_url == video.video_url


def test_get_videos_filters_by_user(db, user):
    other = db.create_user("bob@example.com", PASSWORD_HASH)
    first = db.create_video("One", "", user.id)
    second = db.create_video("Two", "", user.id)
    db.create_video("Three", "", other.id)
    videos = db.get_videos(user.id)
    assert {v.id for v in videos} == {first.id, second.id}
    created = [v.created_at for v in videos]
    assert created == sorted(created, reverse=True)


def test_delete_video(db, user):
    video = db.create_video("Gone", "", user.id)
    db.delete_video(video.id)
    assert db.get_video(video.id) is None


def test_reset_clears_all_tables(db, user):
    db.create_video("One", "", user.id)
    db.create_refresh_token("token", user.id, datetime.now(timezone.utc))
    db.reset()
    assert db.get_users() == []
    assert db.get_videos(user.id) == []
    assert db.get_refresh_token("token") is None


def test_persists_to_file(tmp_path):
    path = tmp_path / "tubely.db"
    with Database(path) as first:
        created = first.create_user("carol@example.com", PASSWORD_HASH)
    with Database(path) as second:
        assert second.get_user(created.id) == created


def test_closed_database_raises(tmp_path):
    database = Database(tmp_path / "closed.db")
    with database:
        pass
    with pytest.raises(sqlite3.ProgrammingError):
        database.get_users()