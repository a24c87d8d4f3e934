from __future__ import annotations

import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from skystatus.core.config import settings
from skystatus.core.logging import get_logger, log_event, log_exception, monotonic_ms

logger = get_logger(__name__)


class StorageError(RuntimeError):
    pass


@dataclass(frozen=True)
class StoredObject:
    key: str
    byte_size: int


class ObjectStorage:
    def put(self, *, key: str, body: bytes) -> StoredObject:  # pragma: no cover
        raise NotImplementedError

    def get(self, *, key: str) -> bytes:  # pragma: no cover
        raise NotImplementedError

    def exists(self, *, key: str) -> bool:  # pragma: no cover
        raise NotImplementedError

    def delete(self, *, key: str) -> None:  # pragma: no cover
        raise NotImplementedError


class LocalObjectStorage(ObjectStorage):
    def __init__(self, root: Path):
        self._root = root
        self._root.mkdir(parents=True, exist_ok=True)

    def put(self, *, key: str, body: bytes) -> StoredObject:
        start = time.monotonic()
        path = self._root / key
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(body)
        except OSError as e:
            log_exception(logger, "storage.put.failure", backend="local", storage_key=key, byte_size=len(body))
            raise StorageError(f"Could not write object: {key}") from e
        log_event(
            logger,
            "storage.put.success",
            backend="local",
            storage_key=key,
            byte_size=len(body),
            duration_ms=monotonic_ms(start),
        )
        return StoredObject(key=key, byte_size=len(body))

    def get(self, *, key: str) -> bytes:
        start = time.monotonic()
        path = self._root / key
        if not path.exists():
            log_event(
                logger,
                "storage.get.failure",
                backend="local",
                storage_key=key,
                duration_ms=monotonic_ms(start),
            )
            raise StorageError(f"Object not found: {key}")
        try:
            return path.read_bytes()
        except OSError as e:
            log_exception(
                logger,
                "storage.get.failure",
                backend="local",
                storage_key=key,
                duration_ms=monotonic_ms(start),
            )
            raise StorageError(f"Could not read object: {key}") from e

    def exists(self, *, key: str) -> bool:
        return (self._root / key).is_file()

    def delete(self, *, key: str) -> None:
        path = self._root / key
        if path.exists():
            try:
                path.unlink()
            except OSError as e:
                log_exception(logger, "storage.delete.failure", backend="local", storage_key=key)
                raise StorageError(f"Could not delete object: {key}") from e


def _s3_region() -> str:
    # S3-compatible providers report "auto"; boto3 needs a concrete region.
    region = settings.s3_region
    if not region or region.lower() == "auto":
        return "us-east-1"
    return region


def _s3_client(*, max_attempts: int = 3, connect_timeout: int = 30, read_timeout: int = 60):
    session = boto3.session.Session(
        aws_access_key_id=settings.s3_access_key_id,
        aws_secret_access_key=settings.s3_secret_access_key,
        region_name=_s3_region(),
    )
    config = Config(
        s3={"addressing_style": "virtual"},
        retries={"max_attempts": max_attempts, "mode": "adaptive"},
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
    )
    return session.client("s3", endpoint_url=settings.s3_endpoint_url or None, config=config)


def _error_code(error: Exception) -> str | None:
    if isinstance(error, ClientError):
        return (error.response.get("Error") or {}).get("Code")
    return None


class S3ObjectStorage(ObjectStorage):
    _RETRYABLE = frozenset(
        {
            "RequestCanceled",
            "RequestTimeout",
            "Throttling",
            "ThrottlingException",
            "SlowDown",
            "InternalError",
            "ServiceUnavailable",
        }
    )

    def __init__(self) -> None:
        self._client = _s3_client()
        self._bucket = settings.s3_bucket
        self._ensure_bucket()

    def _retry_delay_s(self, attempt: int) -> float:
        # attempt=1 => 0.25s, attempt=2 => 0.5s, attempt=3 => 1.0s, ...
        return min(3.0, 0.25 * (2 ** (attempt - 1)))

    def _should_retry_error(self, error: Exception) -> bool:
        if isinstance(error, ClientError):
            return _error_code(error) in self._RETRYABLE
        return isinstance(error, BotoCoreError)

    def _ensure_bucket(self) -> None:
        try:
            self._client.head_bucket(Bucket=self._bucket)
        except ClientError:
            self._client.create_bucket(Bucket=self._bucket)

    def put(self, *, key: str, body: bytes) -> StoredObject:
        start = time.monotonic()
        max_attempts = 5
        for attempt in range(1, max_attempts + 1):
            try:
                self._client.put_object(Bucket=self._bucket, Key=key, Body=body)
                break
            except (BotoCoreError, ClientError) as e:
                if attempt < max_attempts and self._should_retry_error(e):
                    delay_s = self._retry_delay_s(attempt)
                    log_event(
                        logger,
                        "storage.put.retry",
                        backend="s3",
                        storage_key=key,
                        byte_size=len(body),
                        attempt=attempt,
                        delay_s=delay_s,
                        error_code=_error_code(e),
                        error_type=type(e).__name__,
                    )
                    time.sleep(delay_s)
                    continue
                log_exception(
                    logger,
                    "storage.put.failure",
                    backend="s3",
                    storage_key=key,
                    byte_size=len(body),
                    attempt=attempt,
                )
                raise StorageError(f"Could not write object: {key}") from e
        log_event(
            logger,
            "storage.put.success",
            backend="s3",
            storage_key=key,
            byte_size=len(body),
            duration_ms=monotonic_ms(start),
        )
        return StoredObject(key=key, byte_size=len(body))

    def get(self, *, key: str) -> bytes:
        start = time.monotonic()
        try:
            resp = self._client.get_object(Bucket=self._bucket, Key=key)
            return resp["Body"].read()
        except (BotoCoreError, ClientError) as e:
            log_exception(
                logger,
                "storage.get.failure",
                backend="s3",
                storage_key=key,
                duration_ms=monotonic_ms(start),
            )
            raise StorageError(f"Object not found: {key}") from e

    def exists(self, *, key: str) -> bool:
        try:
            self._client.head_object(Bucket=self._bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in {"404", "NoSuchKey", "NotFound"}:
                return False
            raise StorageError(f"Could not stat object: {key}") from e
        return True

    def delete(self, *, key: str) -> None:
        try:
            self._client.delete_object(Bucket=self._bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            log_exception(logger, "storage.delete.failure", backend="s3", storage_key=key)
            raise StorageError(f"Could not delete object: {key}") from e


_storage: ObjectStorage | None = None


def _local_root() -> Path:
    root = settings.local_storage_path
    if not root.is_absolute():
        root = Path(os.getcwd()) / root
    return root


def get_storage() -> ObjectStorage:
    global _storage  # noqa: PLW0603
    if _storage is not None:
        return _storage

    if settings.storage_backend == "s3":
        _storage = S3ObjectStorage()
    else:
        _storage = LocalObjectStorage(_local_root())
    return _storage


def reset_storage() -> None:
    global _storage  # noqa: PLW0603
    _storage = None


def diagnose_storage(*, write_test: bool = False) -> dict[str, Any]:
    """Connectivity check for the configured backend; never returns credentials.

    With ``write_test`` a small object is written, read back and deleted.
    """
    if settings.storage_backend == "s3":
        result: dict[str, Any] = {
            "ok": True,
            "backend": "s3",
            "s3": {"endpoint_url": settings.s3_endpoint_url, "bucket": settings.s3_bucket},
        }
        if not settings.s3_access_key_id or not settings.s3_secret_access_key:
            return {"ok": False, "backend": "s3", "error": "missing_s3_credentials"}
        try:
            _s3_client(max_attempts=1, connect_timeout=5, read_timeout=20).head_bucket(
                Bucket=settings.s3_bucket
            )
        except (BotoCoreError, ClientError) as e:
            return {**result, "ok": False, "error_type": type(e).__name__, "error_code": _error_code(e)}
        if not write_test:
            return result
        storage: ObjectStorage = S3ObjectStorage()
    else:
        result = {"ok": True, "backend": "local", "root": str(_local_root())}
        if not write_test:
            return result
        storage = LocalObjectStorage(_local_root())

    key = f"diagnostics/healthz-{time.time_ns()}.txt"
    body = b"ok"
    try:
        storage.put(key=key, body=body)
        out = storage.get(key=key)
        storage.delete(key=key)
    except StorageError as e:
        return {**result, "ok": False, "error_type": type(e).__name__, "error": str(e)}
    result["write_test"] = {"ok": out == body, "key": key, "byte_size": len(body)}
    result["ok"] = out == body
    return result
