"""
Vault Search Hash — keyed, truncated tokens for equality search.

A search token lets the app find entries containing the same text without
storing the text. Tokens are truncated for storage, so unrelated inputs can
collide; they are a coarse index, not a security boundary.
"""
import hmac
import hashlib
from typing import Optional

from .config import VaultConfig, resolve_config
from .exceptions import DerivationError


def hash_for_search(
    content: str,
    salt: str,
    config: Optional[VaultConfig] = None,
) -> str:
    """Return the HMAC-SHA256 of ``content`` keyed by ``salt``, truncated.

    Raises:
        DerivationError: If ``salt`` is empty.
    """
    if not salt:
        raise DerivationError("Search hashing requires a non-empty salt")
    config = resolve_config(config)
    digest = hmac.new(
        salt.encode("utf-8"), content.encode("utf-8"), hashlib.sha256,
    ).hexdigest()
    return digest[:config.search_token_length]
