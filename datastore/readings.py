from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional, Protocol

from azure.core.exceptions import AzureError
from azure.cosmos.aio import CosmosClient

from models.records import TelemetryReading
from settings import get_settings

logger = logging.getLogger(__name__)

LATEST_READING_QUERY = (
    "SELECT TOP 1 * FROM c WHERE c.device = @deviceId ORDER BY c.time DESC"
)


class ReadingStoreError(Exception):
    """Raised when the backing store cannot produce a reading."""


class ReadingStore(Protocol):
    async def fetch_latest(self, device_id: str) -> Optional[TelemetryReading]:
        ...

    async def close(self) -> None:
        ...


class CosmosReadingStore:
    """Reads telemetry documents from an Azure Cosmos DB container."""

    def __init__(self, container: Any, client: Optional[CosmosClient] = None) -> None:
        self.container = container
        self._client = client

    @classmethod
    def connect(
        cls, endpoint: str, key: str, database_id: str, container_id: str
    ) -> "CosmosReadingStore":
        client = CosmosClient(endpoint, credential=key)
        container = client.get_database_client(database_id).get_container_client(
            container_id
        )
        return cls(container=container, client=client)

    async def fetch_latest(self, device_id: str) -> Optional[TelemetryReading]:
        items = self.container.query_items(
            query=LATEST_READING_QUERY,
            parameters=[{"name": "@deviceId", "value": device_id}],
        )
        document: Optional[Dict[str, Any]] = None
        try:
            async for item in items:
                document = item
                break
        except AzureError as exc:
            raise ReadingStoreError(f"Cosmos query failed: {exc}") from exc

        if document is None:
            return None
        try:
            return TelemetryReading.from_document(document)
        except ValueError as exc:
            raise ReadingStoreError(str(exc)) from exc

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()


class InMemoryReadingStore:
    """Process-local reading store used for tests and offline development."""

    def __init__(self, fixture_path: Optional[Path] = None) -> None:
        self.fixture_path = fixture_path
        self._documents: List[Dict[str, Any]] = []
        self._lock = Lock()
        if fixture_path:
            self._load_from_disk()

    def put_reading(self, reading: TelemetryReading | Dict[str, Any]) -> None:
        document = reading.to_document() if isinstance(reading, TelemetryReading) else dict(reading)
        with self._lock:
            self._documents.append(document)

    async def fetch_latest(self, device_id: str) -> Optional[TelemetryReading]:
        with self._lock:
            candidates = [doc for doc in self._documents if doc.get("device") == device_id]
        if not candidates:
            return None
        try:
            latest = max(candidates, key=lambda doc: doc.get("time"))
        except TypeError as exc:
            raise ReadingStoreError("Readings have incomparable timestamps.") from exc
        try:
            return TelemetryReading.from_document(latest)
        except ValueError as exc:
            raise ReadingStoreError(str(exc)) from exc

    async def close(self) -> None:
        return None

    def _load_from_disk(self) -> None:
        if not self.fixture_path or not self.fixture_path.exists():
            return

        try:
            raw = self.fixture_path.read_text(encoding="utf-8") or "[]"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            logger.warning(
                "Ignoring unreadable readings fixture %s",
                self.fixture_path,
                extra={"store": "memory"},
            )
            data = []

        if isinstance(data, dict):
            data = [data]
        for document in data:
            if isinstance(document, dict):
                self._documents.append(document)


@lru_cache
def build_default_store() -> ReadingStore:
    settings = get_settings()
    if settings.cosmos_configured:
        logger.info(
            "Using Cosmos DB reading store",
            extra={"store": f"{settings.database_id}/{settings.container_id}"},
        )
        return CosmosReadingStore.connect(
            endpoint=settings.cosmos_endpoint,  # type: ignore[arg-type]
            key=settings.cosmos_key,  # type: ignore[arg-type]
            database_id=settings.database_id,
            container_id=settings.container_id,
        )

    logger.warning(
        "COSMOSDB_ENDPOINT/COSMOSDB_KEY not set; using in-memory reading store",
        extra={"store": "memory"},
    )
    fixture = settings.readings_fixture_path
    return InMemoryReadingStore(fixture_path=Path(fixture) if fixture else None)
