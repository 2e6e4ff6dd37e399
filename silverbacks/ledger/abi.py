"""
Silverbacks Ledger ABIs

Minimal fragments of the external contracts the protocol consumes.
"""

from typing import Final, List


def _function(name: str, inputs: List[tuple], outputs: tuple = (), view: bool = False) -> dict:
    return {
        "type": "function",
        "name": name,
        "inputs": [{"name": arg, "type": kind} for arg, kind in inputs],
        "outputs": [{"name": "", "type": kind} for kind in outputs],
        "stateMutability": "view" if view else "nonpayable",
    }


VAULT_ABI: Final[List[dict]] = [
    _function("deposit", [("amount", "uint256"), ("metadataURI", "string")]),
    _function("depositTo", [("recipient", "address"), ("amount", "uint256"), ("metadataURI", "string")]),
    _function("batchDeposit", [("recipients", "address[]"), ("metadataURIs", "string[]")]),
    _function("redeem", [("tokenId", "uint256")]),
    _function("redeemTo", [("tokenId", "uint256"), ("signature", "bytes")]),
    _function("claimNFT", [("tokenId", "uint256"), ("signature", "bytes")]),
]

NFT_ABI: Final[List[dict]] = [
    _function("balanceOf", [("owner", "address")], ("uint256",), view=True),
    _function("tokenOfOwnerByIndex", [("owner", "address"), ("index", "uint256")], ("uint256",), view=True),
    _function("faceValue", [("tokenId", "uint256")], ("uint256",), view=True),
    _function("tokenURI", [("tokenId", "uint256")], ("string",), view=True),
]

ERC20_ABI: Final[List[dict]] = [
    _function("balanceOf", [("owner", "address")], ("uint256",), view=True),
    _function("allowance", [("owner", "address"), ("spender", "address")], ("uint256",), view=True),
    _function("approve", [("spender", "address"), ("amount", "uint256")], ("bool",)),
]
