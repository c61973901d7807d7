"""
chains - Node access (view calls) and the external signer boundary.
"""

from chains.client import NodeClient, Signer

__all__ = ["NodeClient", "Signer"]
