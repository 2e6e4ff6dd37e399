"""
Silverbacks Voucher Builder

Generates vouchers: a fresh ephemeral key pair, a short secret, the
encrypted key, the shareable link, and the QR code of the secret.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import List, Optional

from silverbacks.constants import SECRET_LENGTH, QR_WIDTH_PX, QR_MARGIN
from silverbacks.core.types import KeyPair, PrivateKey, VoucherSecret
from silverbacks.crypto.codec import CodecScheme, encrypt_private_key
from silverbacks.crypto.keys import generate_keypair
from silverbacks.errors import InvalidCount
from silverbacks.voucher.link import VoucherLink, build_link
from silverbacks.voucher.qr import render_qr_png

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Voucher:
    """
    Operator record of one generated voucher.

    The only place the plaintext private key survives after encryption.
    """
    address: str
    private_key: PrivateKey
    ciphertext: str
    secret: VoucherSecret
    link: str
    qr_png: bytes

    def __repr__(self) -> str:
        return f"Voucher(address={self.address}, link={self.link})"

    def voucher_link(self) -> VoucherLink:
        return VoucherLink.parse(self.link)

    def manifest_row(self) -> List[str]:
        """address, privateKey, encryptedPrivateKey, encryptionKey, link"""
        return [
            self.address,
            self.private_key.hex(),
            self.ciphertext,
            self.secret.value,
            self.link,
        ]


def generate_voucher(
    network: str,
    base_url: str,
    scheme: CodecScheme = CodecScheme.LEGACY,
    secret_length: int = SECRET_LENGTH,
    qr_width: int = QR_WIDTH_PX,
    qr_margin: int = QR_MARGIN,
    keypair: Optional[KeyPair] = None,
) -> Voucher:
    """
    Generate one voucher.

    Args:
        network: Chain name written to the link
        base_url: Redemption site origin
        scheme: Ciphertext scheme (legacy unless hardening is opted in)
        secret_length: Secret length in characters
        qr_width: QR image width in pixels
        qr_margin: QR quiet zone in modules
        keypair: Use this key pair instead of a fresh one

    Returns:
        Voucher record
    """
    keypair = keypair or generate_keypair()
    secret = VoucherSecret.generate(secret_length)
    ciphertext = encrypt_private_key(keypair.private_key, secret, scheme)
    link = build_link(base_url, network, keypair.address, ciphertext)

    logger.debug(f"Generated voucher for {keypair.address}")

    return Voucher(
        address=keypair.address,
        private_key=keypair.private_key,
        ciphertext=ciphertext,
        secret=secret,
        link=link,
        qr_png=render_qr_png(secret.value, width=qr_width, margin=qr_margin),
    )


def generate_vouchers(count: int, network: str, base_url: str, **kwargs) -> List[Voucher]:
    """
    Generate `count` independent vouchers.

    Raises:
        InvalidCount: If count <= 0
    """
    if count <= 0:
        raise InvalidCount(count)

    vouchers = [generate_voucher(network, base_url, **kwargs) for _ in range(count)]
    logger.info(f"Generated {count} voucher(s) for network {network!r}")
    return vouchers


def generate_voucher_archive(count: int, network: str, base_url: str, **kwargs) -> bytes:
    """Generate `count` vouchers and bundle them into a ZIP archive."""
    from silverbacks.voucher.archive import write_archive
    return write_archive(generate_vouchers(count, network, base_url, **kwargs))
