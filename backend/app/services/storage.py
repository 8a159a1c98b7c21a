from __future__ import annotations
import io
from collections.abc import Iterator
from datetime import timedelta
from functools import lru_cache
from minio import Minio
from minio.error import S3Error
from app.config import settings

def _parse_endpoint(ep: str) -> tuple[str, bool]:
    # Return (host:port, secure)
    secure = ep.startswith("https://")
    host = ep.replace("http://", "").replace("https://", "")
    return host, secure

@lru_cache(maxsize=1)
def _client() -> Minio:
    host, secure = _parse_endpoint(settings.s3_endpoint)
    client = Minio(host, access_key=settings.s3_access_key, secret_key=settings.s3_secret_key, secure=secure)
    # Ensure bucket exists (idempotent)
    try:
        if not client.bucket_exists(settings.s3_bucket_videos):
            client.make_bucket(settings.s3_bucket_videos)
    except S3Error as e:
        # Parallel workers may race on creation
        if e.code not in ("BucketAlreadyOwnedByYou", "BucketAlreadyExists"):
            raise
    return client

def put_bytes(key: str, data: bytes, content_type: str) -> None:
    _client().put_object(
        settings.s3_bucket_videos, key, io.BytesIO(data), length=len(data), content_type=content_type
    )

def get_bytes(key: str) -> tuple[bytes, str]:
    """
    Retrieve object from storage.
    Returns (data, content_type).
    """
    try:
        response = _client().get_object(settings.s3_bucket_videos, key)
        try:
            data = response.read()
            content_type = response.headers.get('Content-Type', 'application/octet-stream')
        finally:
            response.close()
            response.release_conn()
        return data, content_type
    except S3Error as e:
        if e.code == 'NoSuchKey':
            raise FileNotFoundError(f"Object not found: {key}")
        raise

def stat(key: str) -> tuple[int, str]:
    """Return (size, content_type) without downloading the object."""
    try:
        st = _client().stat_object(settings.s3_bucket_videos, key)
    except S3Error as e:
        if e.code in ("NoSuchKey", "ResourceNotFound"):
            raise FileNotFoundError(f"Object not found: {key}")
        raise
    return st.size, st.content_type or "application/octet-stream"

def iter_range(key: str, offset: int = 0, length: int = 0, chunk_size: int = 1024 * 1024) -> Iterator[bytes]:
    # length=0 reads to the end of the object
    response = _client().get_object(settings.s3_bucket_videos, key, offset=offset, length=length)
    try:
        yield from response.stream(chunk_size)
    finally:
        response.close()
        response.release_conn()

def delete_object(key: str) -> None:
    _client().remove_object(settings.s3_bucket_videos, key)

def presign_get(key: str, expiry_seconds: int | None = None) -> str:
    return _client().presigned_get_object(
        settings.s3_bucket_videos,
        key,
        expires=timedelta(seconds=expiry_seconds or settings.s3_presign_expiry_seconds),
    )
