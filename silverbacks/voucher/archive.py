"""
Silverbacks Voucher Archive

ZIP layout:
    keypairs.csv       address,privateKey,encryptedPrivateKey,encryptionKey,link
    <address>.png      QR code of the row's encryptionKey

Row order is generation order and carries no meaning.
"""

from __future__ import annotations
import csv
import io
import logging
import zipfile
from dataclasses import dataclass
from typing import Dict, Iterable, List

from silverbacks.constants import MANIFEST_FILENAME, MANIFEST_HEADER
from silverbacks.voucher.builder import Voucher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ManifestRow:
    """One manifest line read back from an archive."""
    address: str
    private_key: str
    encrypted_private_key: str
    encryption_key: str
    link: str

    def __repr__(self) -> str:
        return f"ManifestRow(address={self.address}, link={self.link})"


def render_manifest(vouchers: Iterable[Voucher]) -> str:
    """Manifest CSV text, header first, newline-separated."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(MANIFEST_HEADER)
    for voucher in vouchers:
        writer.writerow(voucher.manifest_row())
    return buffer.getvalue()


def write_archive(vouchers: List[Voucher]) -> bytes:
    """Bundle vouchers into a ZIP archive and return its bytes."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for voucher in vouchers:
            archive.writestr(f"{voucher.address}.png", voucher.qr_png)
        archive.writestr(MANIFEST_FILENAME, render_manifest(vouchers))

    logger.info(f"Archived {len(vouchers)} voucher(s)")
    return buffer.getvalue()


def read_manifest(archive_bytes: bytes) -> List[ManifestRow]:
    """Read the manifest rows of an archive."""
    with zipfile.ZipFile(io.BytesIO(archive_bytes)) as archive:
        text = archive.read(MANIFEST_FILENAME).decode("utf-8")

    reader = csv.reader(io.StringIO(text))
    header = next(reader, None)
    if tuple(header or ()) != MANIFEST_HEADER:
        raise ValueError(f"Unexpected manifest header: {header}")

    return [ManifestRow(*row) for row in reader if row]


def read_qr_images(archive_bytes: bytes) -> Dict[str, bytes]:
    """Map address -> QR PNG bytes."""
    with zipfile.ZipFile(io.BytesIO(archive_bytes)) as archive:
        return {
            name[:-len(".png")]: archive.read(name)
            for name in archive.namelist()
            if name.endswith(".png")
        }
