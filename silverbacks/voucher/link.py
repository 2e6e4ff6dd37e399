"""
Silverbacks Voucher Link

    <base>/?network=<chainNameSlug>&address=<0x address>&pk=<ciphertext hex>

`address` and `pk` are required for redemption. `network` is advisory:
it only picks a fallback RPC endpoint and is not bound to the voucher.
The secret never appears in the link.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import urlsplit, parse_qs, quote

from web3 import Web3

from silverbacks.constants import (
    LINK_PARAM_NETWORK,
    LINK_PARAM_ADDRESS,
    LINK_PARAM_KEY,
    LEGACY_CIPHERTEXT_HEX_LENGTH,
)
from silverbacks.core.types import PrivateKey, VoucherSecret
from silverbacks.crypto.codec import (
    CodecScheme,
    decrypt_private_key,
    detect_scheme,
    normalize_ciphertext,
)
from silverbacks.crypto.keys import addresses_match, try_address_from_private_key
from silverbacks.errors import InvalidVoucherParameter

logger = logging.getLogger(__name__)

_HEX_DIGITS = frozenset("0123456789abcdef")


def build_link(base_url: str, network: str, address: str, ciphertext: str) -> str:
    """Render a voucher link."""
    return (
        f"{base_url.rstrip('/')}/?{LINK_PARAM_NETWORK}={quote(network, safe='')}"
        f"&{LINK_PARAM_ADDRESS}={address}&{LINK_PARAM_KEY}={ciphertext}"
    )


@dataclass(frozen=True)
class VoucherLink:
    """Public half of a voucher: what travels in the URL."""
    network: str
    address: str
    ciphertext: str
    base_url: str = ""

    def to_url(self) -> str:
        return build_link(self.base_url, self.network, self.address, self.ciphertext)

    @property
    def scheme(self) -> CodecScheme:
        return detect_scheme(self.ciphertext)

    @property
    def session_key(self) -> Tuple[str, str]:
        """Identity of redemption sessions opened against this voucher."""
        return self.address.lower(), normalize_ciphertext(self.ciphertext)

    @property
    def display_key(self) -> str:
        """`pk` shown as 0x + exactly 64 hex chars (padded or truncated)."""
        raw = self.ciphertext[2:] if self.ciphertext.startswith("0x") else self.ciphertext
        return "0x" + raw.ljust(LEGACY_CIPHERTEXT_HEX_LENGTH, "0")[:LEGACY_CIPHERTEXT_HEX_LENGTH]

    @classmethod
    def parse(cls, url: str) -> VoucherLink:
        """
        Parse a voucher link.

        Raises:
            InvalidVoucherParameter: Missing or malformed address / pk
        """
        parts = urlsplit(url.strip())
        params = parse_qs(parts.query, keep_blank_values=True)

        def first(name: str) -> str:
            values = params.get(name)
            return values[0].strip() if values else ""

        address = first(LINK_PARAM_ADDRESS)
        if not address:
            raise InvalidVoucherParameter(LINK_PARAM_ADDRESS, "missing")
        if not Web3.is_address(address):
            raise InvalidVoucherParameter(LINK_PARAM_ADDRESS, f"not an address: {address}")

        ciphertext = first(LINK_PARAM_KEY)
        if not ciphertext:
            raise InvalidVoucherParameter(LINK_PARAM_KEY, "missing")
        normalized = normalize_ciphertext(ciphertext)
        if not set(normalized) <= _HEX_DIGITS:
            raise InvalidVoucherParameter(LINK_PARAM_KEY, "not hex")
        try:
            detect_scheme(normalized)
        except ValueError as e:
            raise InvalidVoucherParameter(LINK_PARAM_KEY, str(e)) from e

        base_url = f"{parts.scheme}://{parts.netloc}" if parts.netloc else ""

        return cls(
            network=first(LINK_PARAM_NETWORK),
            address=address,
            ciphertext=normalized,
            base_url=base_url,
        )

    @classmethod
    def try_parse(cls, url: str) -> Optional[VoucherLink]:
        """Parse, or None when the URL carries no usable voucher."""
        try:
            return cls.parse(url)
        except InvalidVoucherParameter as e:
            logger.warning(f"No ephemeral voucher in link: {e}")
            return None


@dataclass(frozen=True)
class LinkDecryption:
    """Result of decrypting a link offline."""
    link: VoucherLink
    private_key: PrivateKey
    derived_address: Optional[str]

    @property
    def matches(self) -> bool:
        return addresses_match(self.derived_address, self.link.address)

    def __repr__(self) -> str:
        return (
            f"LinkDecryption(address={self.link.address}, "
            f"derived={self.derived_address}, matches={self.matches})"
        )


def decrypt_link(url: str, secret: str) -> LinkDecryption:
    """
    Decrypt a voucher link without touching the chain.

    Operator tool for checking a printed voucher: reports the decrypted
    key and whether it derives the link's address.
    """
    link = VoucherLink.parse(url)
    raw = decrypt_private_key(link.ciphertext, VoucherSecret(secret))
    result = LinkDecryption(
        link=link,
        private_key=PrivateKey(raw),
        derived_address=try_address_from_private_key(raw),
    )
    logger.info(f"Test decryption for {link.address}: matches={result.matches}")
    return result
