"""
Encrypted backup and restore of the whole ledger.

A backup is one JSON document holding every table, encrypted with a
passphrase into the OpenSSL "Salted__" envelope (AES-256-CBC, key and IV
derived with EVP_BytesToKey over MD5) and Base64 encoded. The same format is
produced by `openssl enc -aes-256-cbc -md md5 -a` and by crypto-js.
"""

import base64
import binascii
import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Optional

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from tallybook.config import (
    BACKUP_FILE_SUFFIX,
    BACKUP_VERSION,
    DEFAULT_BACKUP_NAME,
    ERROR_MESSAGES,
)
from tallybook.db import LedgerRepository
from tallybook.models import now_ms

logger = logging.getLogger(__name__)

SALT_MAGIC = b"Salted__"
SALT_SIZE = 8
KEY_SIZE = 32
IV_SIZE = 16

# Document collection name -> table name
COLLECTIONS = {
    "categories": "categories",
    "transactions": "transactions",
    "items": "transaction_items",
    "accounts": "accounts",
    "debts": "debts",
    "recurringPayments": "recurring_payments",
    "settings": "settings",
    "transactionAllocations": "transaction_allocations",
    "loans": "loans",
    "loanInstallments": "loan_installments",
}
REQUIRED_COLLECTIONS = ("categories", "transactions")


class BackupError(ValueError):
    """Raised when a backup cannot be decrypted or is structurally invalid."""

    def __init__(self, message: str = ERROR_MESSAGES["invalid_backup"]):
        super().__init__(message)


# =============================================================================
# Encryption
# =============================================================================


def _evp_bytes_to_key(passphrase: bytes, salt: bytes) -> tuple[bytes, bytes]:
    """OpenSSL EVP_BytesToKey with MD5 and one iteration."""
    derived = b""
    block = b""
    while len(derived) < KEY_SIZE + IV_SIZE:
        digest = hashes.Hash(hashes.MD5())
        digest.update(block + passphrase + salt)
        block = digest.finalize()
        derived += block
    return derived[:KEY_SIZE], derived[KEY_SIZE:KEY_SIZE + IV_SIZE]


def encrypt(plaintext: str, passphrase: str) -> str:
    """Encrypt text with a passphrase into a Base64 "Salted__" blob."""
    salt = os.urandom(SALT_SIZE)
    key, iv = _evp_bytes_to_key(passphrase.encode("utf-8"), salt)

    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()

    return base64.b64encode(SALT_MAGIC + salt + ciphertext).decode("ascii")


def decrypt(blob: str, passphrase: str) -> str:
    """
    Decrypt a Base64 "Salted__" blob.

    Raises:
        BackupError: If the blob is malformed or the passphrase is wrong
    """
    try:
        raw = base64.b64decode(blob.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise BackupError() from e

    if not raw.startswith(SALT_MAGIC) or len(raw) < len(SALT_MAGIC) + SALT_SIZE + IV_SIZE:
        raise BackupError()

    salt = raw[len(SALT_MAGIC):len(SALT_MAGIC) + SALT_SIZE]
    ciphertext = raw[len(SALT_MAGIC) + SALT_SIZE:]
    key, iv = _evp_bytes_to_key(passphrase.encode("utf-8"), salt)

    try:
        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        plaintext = unpadder.update(padded) + unpadder.finalize()
        return plaintext.decode("utf-8")
    except ValueError as e:
        # Bad padding, truncated blocks and undecodable bytes all mean a wrong key
        raise BackupError() from e


def sanitize_backup_filename(name: Optional[str] = None) -> str:
    """
    Make a safe backup file name.

    Every character outside [a-z0-9] becomes "_", the result is lowercased
    and always ends in ".enc".
    """
    if name:
        safe = re.sub(r"[^a-z0-9]", "_", name, flags=re.IGNORECASE).lower()
    else:
        safe = DEFAULT_BACKUP_NAME
    return safe if safe.endswith(BACKUP_FILE_SUFFIX) else f"{safe}{BACKUP_FILE_SUFFIX}"


# =============================================================================
# Backup Service
# =============================================================================


class BackupService:
    """Builds, encrypts, validates and restores full-ledger backups."""

    def __init__(self, repository: LedgerRepository):
        self.repository = repository

    def build_backup_document(self) -> dict[str, Any]:
        """Snapshot every table into one versioned document."""
        tables = self.repository.dump_tables()
        document: dict[str, Any] = {"version": BACKUP_VERSION, "timestamp": now_ms()}
        for collection, table in COLLECTIONS.items():
            document[collection] = tables.get(table, [])
        return document

    def export_backup(self, password: str) -> str:
        """Encrypt the current ledger into backup text."""
        document = self.build_backup_document()
        payload = json.dumps(document, indent=2, ensure_ascii=False)
        logger.info(
            f"Exported backup: {len(document['transactions'])} transactions, "
            f"{len(document['accounts'])} accounts"
        )
        return encrypt(payload, password)

    def write_backup(
        self, password: str, directory: Path, filename: Optional[str] = None
    ) -> Path:
        """
        Write an encrypted backup file.

        Args:
            password: Passphrase for the backup
            directory: Directory to write into
            filename: Optional file name, sanitized before use

        Returns:
            Path of the written file
        """
        path = Path(directory) / sanitize_backup_filename(filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.export_backup(password), encoding="utf-8")
        logger.info(f"Backup written to {path}")
        return path

    def parse_backup(self, ciphertext: str, password: str) -> dict[str, Any]:
        """
        Decrypt and validate backup text without touching the database.

        Raises:
            BackupError: If the text cannot be decrypted or parsed, or the
                document lacks its category and transaction collections
        """
        plaintext = decrypt(ciphertext, password)
        if not plaintext:
            raise BackupError()

        try:
            document = json.loads(plaintext)
        except json.JSONDecodeError as e:
            raise BackupError() from e

        if not isinstance(document, dict):
            raise BackupError()
        for collection in REQUIRED_COLLECTIONS:
            if not isinstance(document.get(collection), list):
                logger.warning(f"Backup is missing the '{collection}' collection")
                raise BackupError()
        for collection in COLLECTIONS:
            rows = document.get(collection)
            if rows is None:
                continue
            if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
                logger.warning(f"Backup collection '{collection}' is malformed")
                raise BackupError()

        return document

    def import_backup(self, ciphertext: str, password: str):
        """
        Replace the whole ledger with the contents of a backup.

        The document is fully validated first; the restore itself runs as a
        single unit of work and leaves the database unchanged on failure.
        Collections absent from the document restore as empty tables.
        """
        document = self.parse_backup(ciphertext, password)
        tables = {table: document.get(collection) or [] for collection, table in COLLECTIONS.items()}
        self.repository.replace_all(tables)
        logger.info(
            f"Imported backup version {document.get('version')} "
            f"from {document.get('timestamp')}"
        )

    def read_backup(self, path: Path, password: str):
        """Restore the ledger from a backup file."""
        ciphertext = Path(path).read_text(encoding="utf-8")
        self.import_backup(ciphertext, password)
