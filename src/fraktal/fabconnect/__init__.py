"""Fabconnect (Fabric connector) REST client."""

from fraktal.fabconnect.client import FabconnectClient, TxResponse, tx_body

__all__ = ["FabconnectClient", "TxResponse", "tx_body"]
