"""HTTP client and command-line tool for SOS."""

from services.client.client import SosClient

__all__ = ["SosClient"]
