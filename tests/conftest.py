"""Shared fixtures: an in-memory stand-in for a boto3 S3 client."""

import hashlib
import tempfile
import threading
import time
from pathlib import Path
from typing import Any, Optional

import pytest
from botocore.exceptions import ClientError

from pys3sync.api import S3Client
from pys3sync.output import OutputFormatter
from pys3sync.utils import DEFAULT_MULTIPART_CHUNKSIZE, DEFAULT_MULTIPART_THRESHOLD


def client_error(code: str, operation: str, message: str = "") -> ClientError:
    return ClientError(
        {"Error": {"Code": code, "Message": message or code}}, operation
    )


def s3_etag(data: bytes, threshold: int, chunksize: int) -> str:
    """ETag the real service reports for an upload of ``data``."""
    if len(data) < threshold:
        return hashlib.md5(data).hexdigest()
    parts = [
        hashlib.md5(data[i : i + chunksize]).digest()
        for i in range(0, len(data), chunksize)
    ]
    return f"{hashlib.md5(b''.join(parts)).hexdigest()}-{len(parts)}"


class FakePaginator:
    def __init__(self, store: "FakeBotoS3"):
        self.store = store

    def paginate(self, Bucket: str, Prefix: str = ""):
        self.store.list_calls.append((Bucket, Prefix))
        if Bucket in self.store.missing_buckets:
            raise client_error("NoSuchBucket", "ListObjectsV2")
        if self.store.fail_list:
            raise client_error("InternalError", "ListObjectsV2")

        keys = sorted(
            key for key in self.store.objects.get(Bucket, {}) if key.startswith(Prefix)
        )
        page_size = self.store.page_size
        if not keys:
            yield {"KeyCount": 0}
            return
        for start in range(0, len(keys), page_size):
            yield {
                "Contents": [
                    {
                        "Key": key,
                        "Size": len(self.store.objects[Bucket][key]["Body"]),
                        "ETag": f'"{self.store.objects[Bucket][key]["ETag"]}"',
                    }
                    for key in keys[start : start + page_size]
                ]
            }


class FakeBotoS3:
    """Thread-safe in-memory object store with the boto3 client surface.

    Records every call, tracks the number of simultaneous uploads/deletes
    and can be told to fail specific keys.
    """

    def __init__(self, page_size: int = 1000, delay: float = 0.0):
        self.objects: dict[str, dict[str, dict[str, Any]]] = {}
        self.page_size = page_size
        self.delay = delay
        self.missing_buckets: set[str] = set()
        self.fail_list = False
        self.fail_upload_keys: set[str] = set()
        self.denied_upload_keys: set[str] = set()
        self.fail_delete = False
        self.list_calls: list[tuple[str, str]] = []
        self.upload_calls: list[dict[str, Any]] = []
        self.delete_calls: list[list[str]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def put(self, bucket: str, key: str, body: bytes = b"", etag: Optional[str] = None):
        """Seed an object directly."""
        self.objects.setdefault(bucket, {})[key] = {
            "Body": body,
            "ETag": etag or hashlib.md5(body).hexdigest(),
            "ExtraArgs": {},
        }

    def keys(self, bucket: str) -> list[str]:
        return sorted(self.objects.get(bucket, {}))

    def get_paginator(self, name: str) -> FakePaginator:
        assert name == "list_objects_v2"
        return FakePaginator(self)

    def _enter(self) -> None:
        with self._lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)

    def _leave(self) -> None:
        with self._lock:
            self.in_flight -= 1

    def upload_file(
        self,
        Filename: str,
        Bucket: str,
        Key: str,
        ExtraArgs: Optional[dict[str, Any]] = None,
        Callback: Any = None,
        Config: Any = None,
    ) -> None:
        self._enter()
        try:
            if self.delay:
                time.sleep(self.delay)
            with self._lock:
                self.upload_calls.append(
                    {
                        "Filename": Filename,
                        "Bucket": Bucket,
                        "Key": Key,
                        "ExtraArgs": dict(ExtraArgs or {}),
                    }
                )
            if Key in self.denied_upload_keys:
                raise client_error("AccessDenied", "PutObject")
            if Key in self.fail_upload_keys:
                raise client_error("InternalError", "PutObject", "We broke")

            data = Path(Filename).read_bytes()
            threshold = getattr(
                Config, "multipart_threshold", DEFAULT_MULTIPART_THRESHOLD
            )
            chunksize = getattr(
                Config, "multipart_chunksize", DEFAULT_MULTIPART_CHUNKSIZE
            )
            if Callback is not None:
                half = len(data) // 2
                if half:
                    Callback(half)
                Callback(len(data) - half)
            with self._lock:
                self.objects.setdefault(Bucket, {})[Key] = {
                    "Body": data,
                    "ETag": s3_etag(data, threshold, chunksize),
                    "ExtraArgs": dict(ExtraArgs or {}),
                }
        finally:
            self._leave()

    def delete_objects(self, Bucket: str, Delete: dict[str, Any]) -> dict[str, Any]:
        self._enter()
        try:
            if self.delay:
                time.sleep(self.delay)
            keys = [item["Key"] for item in Delete["Objects"]]
            with self._lock:
                self.delete_calls.append(keys)
            if self.fail_delete:
                raise client_error("InternalError", "DeleteObjects")
            with self._lock:
                bucket = self.objects.get(Bucket, {})
                for key in keys:
                    bucket.pop(key, None)
            return {"Deleted": [{"Key": key} for key in keys]}
        finally:
            self._leave()


@pytest.fixture
def boto_s3():
    """In-memory boto3-like S3 client."""
    return FakeBotoS3()


@pytest.fixture
def s3_client(boto_s3):
    """S3Client wrapping the in-memory store."""
    return S3Client(boto_s3)


@pytest.fixture
def quiet_output():
    """Output formatter that prints nothing."""
    return OutputFormatter(quiet=True)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def write_files(base: Path, files: dict[str, bytes]) -> None:
    """Create ``files`` (relative path -> content) under ``base``."""
    for relative_path, content in files.items():
        path = base / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)


@pytest.fixture
def make_files():
    """Helper creating files from a ``{relative_path: content}`` mapping."""
    return write_files
