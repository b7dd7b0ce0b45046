"""
Vault Password Rotation — re-encryption of vault entries for a new password.

Changing a vault password creates a new salt and key, so every stored entry
must be re-sealed. Rows are processed in batches; a row that fails to open
under the old key is reported, never dropped silently, and never rewritten.

The caller reads rows from and writes updates to the vault-content table;
this module performs no I/O.

Security Note:
    Plaintext exists in memory only during re-encryption of each row.
    Never log plaintext or ciphertext values.
"""
import logging
from collections.abc import Iterable, Iterator, Mapping
from itertools import islice
from typing import Any

from .crypto import EncryptedEnvelope
from .exceptions import DecryptionError, UnsupportedAlgorithmError
from .private_vault import PrivateVault

logger = logging.getLogger("diary.vault")


def _batches(rows: Iterable[Mapping], size: int) -> Iterator[list[Mapping]]:
    it = iter(rows)
    while batch := list(islice(it, size)):
        yield batch


def rotate_vault_password(
    rows: Iterable[Mapping],
    old_vault: PrivateVault,
    new_vault: PrivateVault,
    batch_size: int = 100,
) -> tuple[dict[Any, dict[str, str]], dict]:
    """Re-encrypt vault-content rows from ``old_vault`` to ``new_vault``.

    Args:
        rows: Mappings with an ``id`` and the envelope columns
            ``encrypted_content, iv, auth_tag, algorithm``.
        old_vault: Open vault for the current password.
        new_vault: Open vault for the new password.
        batch_size: Rows processed per batch.

    Returns:
        ``(updates, stats)`` where ``updates`` maps row id to the new envelope
        columns and ``stats`` has keys: total, rotated, errors, failed.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be positive")

    updates: dict[Any, dict[str, str]] = {}
    stats: dict = {"total": 0, "rotated": 0, "errors": 0, "failed": []}

    logger.info("Starting vault password rotation (batch_size=%d)", batch_size)

    for batch_num, batch in enumerate(_batches(rows, batch_size), start=1):
        logger.info("Processing batch %d (%d rows)", batch_num, len(batch))
        for row in batch:
            stats["total"] += 1
            row_id = row.get("id")
            try:
                envelope = EncryptedEnvelope.from_row(row)
                plaintext = old_vault.decrypt(envelope)
                updates[row_id] = new_vault.encrypt(plaintext).to_row()
                stats["rotated"] += 1
            except (DecryptionError, UnsupportedAlgorithmError) as err:
                logger.error(
                    "Error rotating vault entry id=%s: %s",
                    row_id, type(err).__name__,
                )
                stats["errors"] += 1
                stats["failed"].append(row_id)

    logger.info(
        "Vault password rotation complete: total=%d rotated=%d errors=%d",
        stats["total"], stats["rotated"], stats["errors"],
    )
    return updates, stats
