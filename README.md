# tubely

A small video-hosting service. Video records and users are kept in a SQLite
database. A video record can get a thumbnail image, written to a local
assets directory, and a video file, which is rewritten with `ffmpeg` for
fast start and then handed to an object store under a key that reflects its
aspect ratio (`landscape/`, `portrait/` or `other/`).

The package provides a WSGI application that serves a static front end, the
assets directory and read access to single video records, plus library
functions for the storage and upload workflows.

## Requirements

- Python 3.10 or later
- `ffmpeg` and `ffprobe` on the `PATH`, for the video upload workflow

## Installation

```
pip install .
```

## Configuration

`tubely.config.load_config(env_file=".env")` loads variables from the env
file into the environment (variables already set are kept) and then reads
the settings with `Config.from_env()`. A missing env file or any missing or
empty variable raises `tubely.config.ConfigError`. Every variable is
required:

| Variable        | `Config` field        | Use                                                   |
|-----------------|-----------------------|-------------------------------------------------------|
| `DB_PATH`       | `db_path`             | Path of the SQLite database file                      |
| `JWT_SECRET`    | `jwt_secret`          | Read and kept; no endpoint checks tokens yet          |
| `PLATFORM`      | `platform`            | `dev` enables `POST /admin/reset`                     |
| `FILEPATH_ROOT` | `filepath_root`       | Directory served under `/app/`                        |
| `ASSETS_ROOT`   | `assets_root`         | Directory served under `/assets/`                     |
| `S3_BUCKET`     | `s3_bucket`           | Bucket name to pass to `upload_video`                 |
| `S3_REGION`     | `s3_region`           | Read and kept                                         |
| `S3_CF_DISTRO`  | `s3_cf_distribution`  | Base URL to pass to `upload_video`                    |
| `PORT`          | `port`                | Port the server listens on                            |

An example `.env`:

```
DB_PATH=tubely.db
JWT_SECRET=secret
PLATFORM=dev
FILEPATH_ROOT=./app
ASSETS_ROOT=./assets
S3_BUCKET=example-bucket
S3_REGION=us-east-1
S3_CF_DISTRO=https://cdn.example.com
PORT=8091
```

## Running

```
tubely
tubely --env-file path/to/settings.env
```

The command loads the configuration, opens the database (creating its
tables), creates the assets directory if it does not exist and serves the
application on all interfaces at the configured port. Configuration,
database or directory errors are logged and the command exits with status 1.

## HTTP routes

| Method | Path                     | Response                                                    |
|--------|--------------------------|-------------------------------------------------------------|
| any    | `/app/...`               | Files from `FILEPATH_ROOT`; a directory path gives its `index.html` |
| any    | `/assets/...`            | Files from `ASSETS_ROOT`, always with `Cache-Control: no-store` |
| `GET`  | `/api/videos/{videoID}`  | The video record as JSON; 400 for a malformed ID, 404 if absent |
| `POST` | `/admin/reset`           | Deletes every row when `PLATFORM` is `dev`, otherwise 403   |

API failures come back as `{"error": "<message>"}` with the matching status.
JSON output uses compact separators, ISO 8601 UTC times ending in `Z`, and
escapes `<`, `>` and `&`.

## Library

- `tubely.database.Database(path)` – SQLite store, usable as a context
  manager. Methods cover users (`create_user`, `get_user`,
  `get_user_by_email`, `get_user_by_refresh_token`, `get_users`,
  `delete_user`), refresh tokens (`create_refresh_token`,
  `get_refresh_token`, `revoke_refresh_token`, `delete_refresh_token`),
  videos (`create_video`, `get_video`, `get_videos` newest first,
  `update_video`, `delete_video`) and `reset`. Lookups that find nothing
  return `None`. Records are the dataclasses `User`, `Video` and
  `RefreshToken`.
- `tubely.uploads.upload_thumbnail(db, assets_root, port, video_id, user_id,
  content_type, stream)` – accepts `image/jpeg` or `image/png`, writes
  `<videoID>.<ext>` into the assets directory and records a thumbnail URL.
- `tubely.uploads.upload_video(db, store, bucket, distribution, video_id,
  user_id, content_type, stream)` – accepts `video/mp4`, runs it through
  `ffmpeg` for fast start, probes its aspect ratio with `ffprobe`, calls
  `store.put_object(bucket, key, body, content_type)` and records
  `<distribution>/<key>` as the video URL.
- Both upload functions raise `tubely.responses.ApiError` (with `status` and
  `message`) on bad input, on a video the user does not own, or on failure.
- `tubely.media` holds the helpers: `parse_media_type`, `get_file_extension`,
  `classify_aspect_ratio`, `get_video_aspect_ratio`, `aspect_ratio_prefix`,
  `process_video_for_fast_start`, `ensure_assets_dir` and `random_key`.
- `tubely.responses` holds `to_json`, `json_response` and `error_response`.
- `tubely.app.create_app(config, db)` returns the WSGI application.

## What it does not do

- There is no authentication: no login, token refresh or revoke endpoints,
  no access-token checking, and no password hashing. `JWT_SECRET` is read
  but not used.
- The HTTP application has no routes for creating users, creating, listing
  or deleting videos, or uploading thumbnails and videos; those workflows
  exist only as the library functions above.
- No object-store client is included. `upload_video` takes any object with
  a `put_object(bucket, key, body, content_type)` method (the
  `tubely.uploads.ObjectStore` protocol); the command-line server does not
  create one, and `S3_REGION` is not used.

## Tests

```
pip install .[test]
pytest
```