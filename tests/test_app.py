import dataclasses
import json
import uuid

import pytest
from werkzeug.test import Client

from tubely.app import create_app, main
from tubely.config import Config
from tubely.database import Database


@pytest.fixture
def config(tmp_path):
    site = tmp_path / "site"
    site.mkdir()
    (site / "index.html").write_text("<h1>home</h1>")
    (site / "app.js").write_text("console.log(1);")
    assets = tmp_path / "assets"
    assets.mkdir()
    (assets / "thumb.png").write_bytes(b"png-bytes")
    return Config(
        db_path=str(tmp_path / "tubely.db"),
        jwt_secret="secret",
        platform="dev",
        filepath_root=str(site),
        assets_root=str(assets),
        s3_bucket="bucket",
        s3_region="region",
        s3_cf_distribution="https://cdn.example.com",
        port="8091",
    )


@pytest.fixture
def db(config):
    with Database(config.db_path) as database:
        yield database


@pytest.fixture
def client(config, db):
    return Client(create_app(config, db))


def test_reset_in_dev_clears_tables(client, db):
    password = "password"
    user = db.create_user("someone@example.com", password)
    db.create_video("Title", "Description", user.id)
    response = client.post("/admin/reset")
    assert response.status_code == 200
    assert response.get_data(as_text=True) == "Database reset to initial state"
    assert db.get_users() == []
    assert db.get_videos(user.id) == []


def test_reset_forbidden_outside_dev(config, db):
    password = "password"
    db.create_user("someone@example.com", password)
    client = Client(create_app(dataclasses.replace(config, platform="prod"), db))
    response = client.post("/admin/reset")
    assert response.status_code == 403
    assert response.get_data(as_text=True) == "Reset is only allowed in dev environment."
    assert len(db.get_users()) == 1


def test_get_video(client, db):
    password = "password"
    user = db.create_user("someone@example.com", password)
    video = db.create_video("Title", "Description", user.id)
    response = client.get(f"/api/videos/{video.id}")
    assert response.status_code == 200
    assert response.headers["Content-Type"] == "application/json"
    body = json.loads(response.data)
    assert body["id"] == str(video.id)
    assert body["title"] == "Title"
    assert body["user_id"] == str(user.id)
    assert body["video_url"] is None


def test_get_video_invalid_id(client):
    response = client.get("/api/videos/not-a-uuid")
    assert response.status_code == 400
    assert json.loads(response.data) == {"error": "Invalid video ID"}


def test_get_video_missing(client):
    response = client.get(f"/api/videos/{uuid.uuid4()}")
    assert response.status_code == 404
    assert json.loads(response.data) == {"error": "Couldn't get video"}


def test_wrong_method_is_rejected(client):
    response = client.delete(f"/api/videos/{uuid.uuid4()}")
    assert response.status_code == 405


def test_assets_are_not_cached(client):
    response = client.get("/assets/thumb.png")
    assert response.status_code == 200
    assert response.data == b"png-bytes"
    assert response.headers["Cache-Control"] == "no-store"


def test_missing_asset_is_not_cached(client):
    response = client.get("/assets/missing.png")
    assert response.status_code == 404
    assert response.headers["Cache-Control"] == "no-store"


def test_site_files_are_served(client):
    response = client.get("/app/app.js")
    assert response.status_code == 200
    assert response.data == b"console.log(1);"


def test_site_root_serves_index(client):
    response = client.get("/app/")
    assert response.status_code == 200
    assert response.data == b"<h1>home</h1>"


def test_site_blocks_path_traversal(client):
    response = client.get("/app/../tubely.db")
    assert response.status_code == 404


def test_main_without_env_file_fails(tmp_path):
    assert main(["--env-file", str(tmp_path / "missing.env")]) == 1