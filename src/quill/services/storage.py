"""Object storage client for hosted images.

Talks to the Supabase Storage REST API. The relational store and the object
store are not coupled transactionally: uploads happen before the image row is
written and deletes are best-effort once the row is gone.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import quote

import httpx

from quill.core.errors import StorageError
from quill.core.settings import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageConfig:
    """Immutable configuration for storage operations."""

    enabled: bool
    base_url: str | None
    api_key: str | None
    bucket: str
    root_dir: str
    public_bucket_url: str | None
    timeout_seconds: float


@dataclass(frozen=True)
class UploadedObject:
    """Result of a successful upload."""

    path: str
    full_path: str
    id: str
    public_url: str


class ObjectStorage(Protocol):
    """What the image and purge services need from an object store."""

    root_dir: str

    async def upload(
        self, path: str, data: bytes, content_type: str, upsert: bool = False
    ) -> UploadedObject: ...

    async def remove(self, full_path: str) -> None: ...


def load_storage_config() -> StorageConfig:
    """Build configuration object from global settings."""
    return StorageConfig(
        enabled=settings.storage_enabled,
        base_url=settings.storage_url,
        api_key=settings.storage_key,
        bucket=settings.storage_bucket,
        root_dir=settings.storage_root_dir,
        public_bucket_url=settings.storage_bucket_url,
        timeout_seconds=float(settings.storage_http_timeout_seconds),
    )


class StorageClient:
    """HTTP client wrapper for the storage bucket."""

    def __init__(self, config: StorageConfig | None = None) -> None:
        self.config = config or load_storage_config()
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self.config.enabled and bool(self.config.base_url)

    @property
    def root_dir(self) -> str:
        return self.config.root_dir

    async def _ensure_client(self) -> httpx.AsyncClient:
        if not self.enabled:
            raise StorageError("Object storage is not configured")

        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=f"{(self.config.base_url or '').rstrip('/')}/storage/v1",
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                    headers={
                        "Authorization": f"Bearer {self.config.api_key}",
                        "apikey": self.config.api_key or "",
                    },
                )
        return self._client

    def public_url(self, path: str) -> str:
        """Return the public URL of an object stored at ``path`` in the bucket."""
        if self.config.public_bucket_url:
            return f"{self.config.public_bucket_url.rstrip('/')}/{quote(path)}"
        base = (self.config.base_url or "").rstrip("/")
        return f"{base}/storage/v1/object/public/{self.config.bucket}/{quote(path)}"

    async def upload(
        self, path: str, data: bytes, content_type: str, upsert: bool = False
    ) -> UploadedObject:
        """Store ``data`` at ``path``; ``upsert`` overwrites an existing object."""
        client = await self._ensure_client()
        try:
            response = await client.post(
                f"/object/{self.config.bucket}/{quote(path)}",
                content=data,
                headers={
                    "Content-Type": content_type,
                    "x-upsert": "true" if upsert else "false",
                },
            )
        except httpx.HTTPError as exc:
            raise StorageError(f"Storage upload failed: {exc}") from exc
        if response.status_code >= 400:
            raise StorageError(f"Storage responded with {response.status_code}")

        payload = response.json()
        full_path = payload.get("Key") or f"{self.config.bucket}/{path}"
        return UploadedObject(
            path=path,
            full_path=full_path,
            id=str(payload.get("Id") or payload.get("id") or full_path),
            public_url=self.public_url(path),
        )

    async def remove(self, full_path: str) -> None:
        """Delete the object stored under ``full_path`` (``bucket/path``)."""
        client = await self._ensure_client()
        prefix = f"{self.config.bucket}/"
        path = full_path[len(prefix):] if full_path.startswith(prefix) else full_path
        try:
            response = await client.request(
                "DELETE",
                f"/object/{self.config.bucket}",
                json={"prefixes": [path]},
            )
        except httpx.HTTPError as exc:
            raise StorageError(f"Storage delete failed: {exc}") from exc
        if response.status_code >= 400:
            raise StorageError(f"Storage responded with {response.status_code}")

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""
        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None


async def remove_quietly(storage: ObjectStorage, full_path: str) -> bool:
    """Best-effort delete used after the database row is already gone."""
    try:
        await storage.remove(full_path)
    except StorageError as exc:
        logger.warning("Failed to remove stored object %s: %s", full_path, exc)
        return False
    return True


class _StorageClientSingleton:
    """Singleton wrapper for StorageClient."""

    _instance: StorageClient | None = None

    @classmethod
    def get_instance(cls) -> StorageClient:
        if cls._instance is None:
            cls._instance = StorageClient()
        return cls._instance


def get_storage() -> ObjectStorage:
    """Return the shared storage client; overridden in tests."""
    return _StorageClientSingleton.get_instance()


async def close_storage() -> None:
    """Release the shared client's connections on shutdown."""
    if _StorageClientSingleton._instance is not None:
        await _StorageClientSingleton._instance.close()
