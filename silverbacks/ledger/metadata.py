"""
Silverbacks Token Metadata

Token URIs are `ipfs://<cid>` and are dereferenced through an HTTP
gateway. The JSON is loosely typed: every field is optional and a
missing or malformed field is a default, never an error.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from silverbacks.constants import DEFAULT_IPFS_GATEWAY, IPFS_SCHEME, METADATA_TIMEOUT_SEC

logger = logging.getLogger(__name__)


def resolve_uri(uri: str, gateway_url: str = DEFAULT_IPFS_GATEWAY) -> str:
    """Rewrite ipfs:// to the HTTP gateway; other URIs pass through."""
    if uri.startswith(IPFS_SCHEME):
        return gateway_url.rstrip("/") + "/" + uri[len(IPFS_SCHEME):]
    return uri


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


@dataclass(frozen=True)
class TokenMetadata:
    """{image?, properties.imageBack?, name?, description?}"""
    image: Optional[str] = None
    image_back: Optional[str] = None
    name: str = ""
    description: str = ""

    @property
    def display_back(self) -> Optional[str]:
        """Back image, falling back to the front."""
        return self.image_back or self.image

    def resolved(self, gateway_url: str = DEFAULT_IPFS_GATEWAY) -> TokenMetadata:
        """Copy with image URIs rewritten for HTTP display."""
        return TokenMetadata(
            image=resolve_uri(self.image, gateway_url) if self.image else None,
            image_back=resolve_uri(self.image_back, gateway_url) if self.image_back else None,
            name=self.name,
            description=self.description,
        )

    @classmethod
    def from_json(cls, data: Any) -> TokenMetadata:
        if not isinstance(data, dict):
            return cls()
        properties = data.get("properties")
        if not isinstance(properties, dict):
            properties = {}
        return cls(
            image=_text(data.get("image")),
            image_back=_text(properties.get("imageBack")),
            name=_text(data.get("name")) or "",
            description=_text(data.get("description")) or "",
        )


class MetadataFetcher:
    """Async metadata client over an IPFS HTTP gateway."""

    def __init__(
        self,
        gateway_url: str = DEFAULT_IPFS_GATEWAY,
        timeout: float = METADATA_TIMEOUT_SEC,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.gateway_url = gateway_url
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
        return self._client

    async def fetch(self, token_uri: str) -> TokenMetadata:
        """
        Fetch and parse metadata for a token URI.

        Failures are logged and yield empty metadata.
        """
        url = resolve_uri(token_uri, self.gateway_url)
        if not url.startswith(("http://", "https://")):
            logger.debug(f"Not fetching metadata for unsupported URI {token_uri!r}")
            return TokenMetadata()

        try:
            response = await self.client.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Metadata fetch failed for {token_uri}: {e}")
            return TokenMetadata()

        logger.debug(f"Fetched metadata for {token_uri}")
        return TokenMetadata.from_json(data)

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> MetadataFetcher:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
