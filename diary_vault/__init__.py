"""Diary Vault — Private Vault encryption core for Founder Diary."""
from .version import __version__

__all__ = ["__version__"]
