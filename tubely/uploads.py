"""Thumbnail and video upload workflows."""

from __future__ import annotations

import logging
import os
import shutil
import sqlite3
import subprocess
import tempfile
import uuid
from pathlib import Path
from typing import BinaryIO, Protocol

from .database import Database, Video
from .media import (
    aspect_ratio_prefix,
    get_file_extension,
    get_video_aspect_ratio,
    parse_media_type,
    process_video_for_fast_start,
    random_key,
)
from .responses import ApiError

logger = logging.getLogger(__name__)

_THUMBNAIL_TYPES = ("image/jpeg", "image/png")
_VIDEO_TYPE = "video/mp4"


class ObjectStore(Protocol):
    """Somewhere uploaded videos are kept, addressed by bucket and key."""

    def put_object(self, bucket, key, body, content_type):
        """Store the contents of the binary file object ``body`` under ``key``."""


def _parse_id(value, message: str) -> uuid.UUID:
    try:
        return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
    except ValueError as exc:
        raise ApiError(400, message) from exc


def _media_type(content_type: str) -> str:
    try:
        media_type, _ = parse_media_type(content_type or "")
    except ValueError as exc:
        raise ApiError(400, "Couldn't ParseMediaType") from exc
    return media_type


def _owned_video(db: Database, video_id: uuid.UUID, user_id) -> Video:
    try:
        video = db.get_video(video_id)
    except sqlite3.Error as exc:
        raise ApiError(404, "Couldn't get video") from exc
    if video is None:
        raise ApiError(404, "Couldn't get video")
    if video.user_id != _parse_id(user_id, "Unauthorized"):
        raise ApiError(401, "Unauthorized")
    return video


def _save(db: Database, video: Video, message: str) -> None:
    try:
        db.update_video(video)
    except sqlite3.Error as exc:
        raise ApiError(500, message) from exc


def upload_thumbnail(
    db: Database,
    assets_root,
    port,
    video_id,
    user_id,
    content_type: str,
    stream: BinaryIO,
) -> Video:
    """Store a JPEG or PNG thumbnail for a video and record its URL."""
    vid = _parse_id(video_id, "Invalid ID")
    logger.info("uploading thumbnail for video %s by user %s", vid, user_id)

    media_type = _media_type(content_type)
    if media_type not in _THUMBNAIL_TYPES:
        raise ApiError(400, "mediatype is not valid")
    extension = get_file_extension(media_type)

    video = _owned_video(db, vid, user_id)

    path = Path(assets_root) / f"{vid}.{extension}"
    try:
        destination = open(path, "wb")
    except OSError as exc:
        raise ApiError(500, "Couldn't create file") from exc
    with destination:
        try:
            shutil.copyfileobj(stream, destination)
        except OSError as exc:
            raise ApiError(500, "Couldn't copy file") from exc

    thumbnail_url = f"http://localhost:{port}/assets/{random_key()}.{extension}"
    logger.info("thumbnailURL %s", thumbnail_url)
    video.thumbnail_url = thumbnail_url
    _save(db, video, "Couldn't update video")
    return video


def upload_video(
    db: Database,
    store: ObjectStore,
    bucket: str,
    distribution: str,
    video_id,
    user_id,
    content_type: str,
    stream: BinaryIO,
) -> Video:
    """Process an MP4 upload for fast start, store it and record its URL."""
    vid = _parse_id(video_id, "Invalid ID")
    video = _owned_video(db, vid, user_id)

    media_type = _media_type(content_type)
    if media_type != _VIDEO_TYPE:
        raise ApiError(400, "mediatype is not valid")
    extension = get_file_extension(media_type)

    try:
        fd, temp_name = tempfile.mkstemp(prefix="tubely-upload.mp4")
    except OSError as exc:
        raise ApiError(500, "Couldn't create temp file") from exc
    temp_path = Path(temp_name)
    try:
        with os.fdopen(fd, "wb") as temp_file:
            try:
                shutil.copyfileobj(stream, temp_file)
            except OSError as exc:
                raise ApiError(
                    500, "Couldn't copy content of video file to temp file "
                ) from exc

        try:
            processed_path = Path(process_video_for_fast_start(temp_path))
        except (subprocess.SubprocessError, OSError) as exc:
            raise ApiError(500, "couldn't process video for fast start") from exc

        try:
            return _store_video(
                db, store, bucket, distribution, video,
                temp_path, processed_path, media_type, extension,
            )
        finally:
            processed_path.unlink(missing_ok=True)
    finally:
        temp_path.unlink(missing_ok=True)


def _store_video(
    db: Database,
    store: ObjectStore,
    bucket: str,
    distribution: str,
    video: Video,
    original_path: Path,
    processed_path: Path,
    media_type: str,
    extension: str,
) -> Video:
    try:
        processed = open(processed_path, "rb")
    except OSError as exc:
        raise ApiError(500, "couldn't open processed video") from exc
    with processed:
        name = random_key()
        try:
            aspect_ratio = get_video_aspect_ratio(original_path)
        except (subprocess.SubprocessError, OSError, ValueError) as exc:
            raise ApiError(500, "Couldn't get video aspect ratio") from exc

        key = f"{aspect_ratio_prefix(aspect_ratio)}/{name}.{extension}"
        try:
            store.put_object(bucket, key, processed, media_type)
        except Exception as exc:
            raise ApiError(500, "Fail to put object to s3 ") from exc

    video_url = f"{distribution}/{key}"
    logger.info("using video url: %s", video_url)
    video.video_url = video_url
    _save(db, video, "Couldn't update video url")
    return video