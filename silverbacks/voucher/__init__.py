"""
Silverbacks Voucher Generation
"""

from silverbacks.voucher.link import (
    VoucherLink,
    LinkDecryption,
    build_link,
    decrypt_link,
)
from silverbacks.voucher.qr import render_qr_png
from silverbacks.voucher.builder import (
    Voucher,
    generate_voucher,
    generate_vouchers,
    generate_voucher_archive,
)
from silverbacks.voucher.archive import (
    ManifestRow,
    write_archive,
    read_manifest,
    read_qr_images,
)

__all__ = [
    # Link
    "VoucherLink",
    "LinkDecryption",
    "build_link",
    "decrypt_link",
    # QR
    "render_qr_png",
    # Builder
    "Voucher",
    "generate_voucher",
    "generate_vouchers",
    "generate_voucher_archive",
    # Archive
    "ManifestRow",
    "write_archive",
    "read_manifest",
    "read_qr_images",
]
