"""
Silverbacks Voucher Protocol Setup
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read() if f else ""

setup(
    name="silverbacks-vouchers",
    version="1.0.0",
    author="Silverbacks Team",
    description="Ephemeral-key voucher generation and redemption for on-chain vaults",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pycryptodome>=3.19.0",
        "argon2-cffi>=23.1.0",
        "httpx>=0.25.0",
        "eth-account>=0.13.0",
        "web3>=7.0.0,<8",
        "qrcode[pil]>=7.4",
        "Pillow>=10.0.0",
        "click>=8.1.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-timeout>=2.2.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "silverbacks=silverbacks.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Security :: Cryptography",
    ],
    keywords="ethereum voucher nft redemption qr ephemeral-key",
)
