"""
Scryfall bulk data client.

Fetches the bulk data descriptor and streams the (roughly 400MB)
default_cards payload. All transport and HTTP failures surface as
BulkDataFetchError.
"""

import json
import logging
from collections.abc import Callable
from datetime import datetime

import httpx

from brawlforge.config import settings
from brawlforge.models.failure import BulkDataFetchError
from brawlforge.models.scryfall import BulkDescriptor, RawCardRecord

logger = logging.getLogger(__name__)

# Bytes per streamed chunk
_CHUNK_SIZE = 64 * 1024


def _parse_descriptor(entry: dict) -> BulkDescriptor:
    return BulkDescriptor(
        url=entry["download_uri"],
        size_bytes=int(entry.get("size") or 0),
        updated_at=datetime.fromisoformat(entry["updated_at"]),
        name=entry.get("name", ""),
        description=entry.get("description", ""),
    )


class ScryfallBulkClient:
    """
    Bulk source backed by the Scryfall API.

    A fresh httpx.AsyncClient is opened per call unless one is injected.
    """

    def __init__(
        self,
        api_url: str | None = None,
        bulk_type: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_url = (api_url or settings.scryfall_api_url).rstrip("/")
        self.bulk_type = bulk_type or settings.bulk_data_type
        self._client = client

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers={"User-Agent": settings.user_agent, "Accept": "application/json"},
            follow_redirects=True,
            timeout=settings.http_timeout,
        )

    async def get_bulk_descriptor(self) -> BulkDescriptor:
        """
        Look up the download URL, size and timestamp of the bulk file.

        Raises:
            BulkDataFetchError: Request failed or the bulk type is not listed
        """
        url = f"{self.api_url}/bulk-data"
        try:
            if self._client is not None:
                response = await self._client.get(url)
            else:
                async with self._new_client() as client:
                    response = await client.get(url)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise BulkDataFetchError(
                f"Failed to fetch bulk data info: HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise BulkDataFetchError("Failed to fetch bulk data info", detail=str(e)) from e
        except ValueError as e:
            raise BulkDataFetchError("Bulk data info is not valid JSON", detail=str(e)) from e

        for entry in payload.get("data", []):
            if entry.get("type") == self.bulk_type:
                try:
                    descriptor = _parse_descriptor(entry)
                except (KeyError, ValueError) as e:
                    raise BulkDataFetchError(
                        f"Malformed bulk data entry for {self.bulk_type}", detail=str(e)
                    ) from e
                logger.info(
                    "Bulk data %s: %d bytes, updated %s",
                    descriptor.name or self.bulk_type,
                    descriptor.size_bytes,
                    descriptor.updated_at.isoformat(),
                )
                return descriptor

        raise BulkDataFetchError(f"Could not find {self.bulk_type} bulk data URL")

    async def stream_records(
        self,
        descriptor: BulkDescriptor,
        on_progress: Callable[[int, int], None] | None = None,
    ) -> list[RawCardRecord]:
        """
        Download and parse the bulk payload.

        Args:
            descriptor: From get_bulk_descriptor
            on_progress: Called with (loaded_bytes, total_bytes) per chunk;
                total is Content-Length, else the advertised size

        Raises:
            BulkDataFetchError: Download failed or payload is not a JSON list
        """
        chunks: list[bytes] = []
        try:
            if self._client is not None:
                await self._download(self._client, descriptor, chunks, on_progress)
            else:
                async with self._new_client() as client:
                    await self._download(client, descriptor, chunks, on_progress)
        except httpx.HTTPStatusError as e:
            raise BulkDataFetchError(
                f"Failed to download card data: HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise BulkDataFetchError("Failed to download card data", detail=str(e)) from e

        try:
            records = json.loads(b"".join(chunks))
        except ValueError as e:
            raise BulkDataFetchError("Card data is not valid JSON", detail=str(e)) from e

        if not isinstance(records, list):
            raise BulkDataFetchError("Invalid data format: expected array of cards")

        logger.info("Downloaded %d card records", len(records))
        return records

    async def _download(
        self,
        client: httpx.AsyncClient,
        descriptor: BulkDescriptor,
        chunks: list[bytes],
        on_progress: Callable[[int, int], None] | None,
    ) -> None:
        async with client.stream(
            "GET", descriptor.url, timeout=settings.download_timeout
        ) as response:
            response.raise_for_status()
            content_length = response.headers.get("content-length")
            total = int(content_length) if content_length else descriptor.size_bytes

            loaded = 0
            async for chunk in response.aiter_bytes(_CHUNK_SIZE):
                chunks.append(chunk)
                loaded += len(chunk)
                if on_progress is not None:
                    on_progress(loaded, total)
