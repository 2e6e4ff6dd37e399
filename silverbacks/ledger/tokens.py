"""
Silverbacks Token Views

Enumerates the tokens an address holds, with metadata attached.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from silverbacks.ledger.gateway import LedgerGateway
from silverbacks.ledger.metadata import MetadataFetcher, TokenMetadata

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenView:
    """Displayable token."""
    token_id: int
    face_value: int
    token_uri: str
    metadata: TokenMetadata = field(default_factory=TokenMetadata)

    @property
    def image(self) -> Optional[str]:
        return self.metadata.image

    @property
    def image_back(self) -> Optional[str]:
        return self.metadata.image_back

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def description(self) -> str:
        return self.metadata.description


async def list_tokens(
    gateway: LedgerGateway,
    owner: str,
    fetcher: Optional[MetadataFetcher] = None,
) -> List[TokenView]:
    """
    List tokens owned by `owner`.

    Without a fetcher, metadata is left empty. Image URIs are resolved
    through the fetcher's gateway. Metadata failures never abort the
    listing.
    """
    count = await gateway.balance_of(owner)
    logger.info(f"{owner} owns {count} token(s)")

    views = []
    for index in range(count):
        token_id = await gateway.token_of_owner_by_index(owner, index)
        face_value = await gateway.face_value(token_id)
        token_uri = await gateway.token_uri(token_id)
        logger.debug(f"Token {token_id}: faceValue={face_value}, tokenURI={token_uri}")

        metadata = TokenMetadata()
        if fetcher is not None and token_uri:
            metadata = (await fetcher.fetch(token_uri)).resolved(fetcher.gateway_url)

        views.append(TokenView(
            token_id=token_id,
            face_value=face_value,
            token_uri=token_uri,
            metadata=metadata,
        ))

    return views
