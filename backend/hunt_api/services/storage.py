from __future__ import annotations
import io
import uuid
from functools import lru_cache
from minio import Minio
from minio.error import S3Error
from hunt_api.config import settings

def _parse_endpoint(ep: str) -> tuple[str, bool]:
    # Return (host:port, secure)
    secure = ep.startswith("https://")
    host = ep.replace("http://", "").replace("https://", "")
    return host, secure

@lru_cache(maxsize=1)
def _client() -> Minio:
    host, secure = _parse_endpoint(settings.s3_endpoint)
    client = Minio(host, access_key=settings.s3_access_key, secret_key=settings.s3_secret_key, secure=secure)
    try:
        if not client.bucket_exists(settings.s3_bucket_uploads):
            client.make_bucket(settings.s3_bucket_uploads)
    except S3Error as e:
        # another worker may have created it first
        if e.code not in ("BucketAlreadyOwnedByYou", "BucketAlreadyExists"):
            raise
    return client

def public_url(key: str) -> str:
    base = (settings.media_public_base_url or f"{settings.s3_endpoint}/{settings.s3_bucket_uploads}").rstrip("/")
    return f"{base}/{key}"

def put_bytes(key: str, data: bytes, content_type: str) -> None:
    _client().put_object(
        settings.s3_bucket_uploads, key, io.BytesIO(data), length=len(data), content_type=content_type
    )

def store_image(data: bytes, content_type: str, ext: str) -> str:
    """Write the image under a fresh key and return its durable URL."""
    key = f"hunts/uploads/{uuid.uuid4()}.{ext}"
    put_bytes(key, data, content_type)
    return public_url(key)
