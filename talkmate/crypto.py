"""Fernet encryption for the secrets stored in ``config.json``.

Only the Groq API key and the admin token are sensitive. They are written as
``ENC:<token>`` with a key kept next to the config in ``<data dir>/.key``.
"""

import logging
import os
from pathlib import Path

from cryptography.fernet import Fernet, InvalidToken

from .config import get_data_dir

logger = logging.getLogger(__name__)

_ENC_PREFIX = "ENC:"
KEY_FILENAME = ".key"

# One Fernet per key file; tests point the data dir somewhere else
_fernets: dict[Path, Fernet] = {}


def set_strict_permissions(filepath: Path) -> None:
    """Owner read/write only. Not fatal where chmod is unsupported."""
    try:
        os.chmod(str(filepath), 0o600)
    except OSError as e:
        logger.warning("Failed to set permissions on %s: %s", filepath, e)


def _load_key(key_file: Path) -> bytes:
    if key_file.exists():
        key = key_file.read_bytes().strip()
        try:
            Fernet(key)
            return key
        except ValueError:
            logger.warning("Key file %s is invalid, generating a new one", key_file)

    key_file.parent.mkdir(parents=True, exist_ok=True)
    key = Fernet.generate_key()
    key_file.write_bytes(key)
    set_strict_permissions(key_file)
    logger.info("Generated new encryption key at %s", key_file)
    return key


def _fernet() -> Fernet:
    key_file = get_data_dir() / KEY_FILENAME
    if key_file not in _fernets:
        _fernets[key_file] = Fernet(_load_key(key_file))
    return _fernets[key_file]


def is_encrypted(value: str) -> bool:
    return bool(value) and value.startswith(_ENC_PREFIX)


def encrypt_value(plaintext: str) -> str:
    if not plaintext or is_encrypted(plaintext):
        return plaintext
    token = _fernet().encrypt(plaintext.encode("utf-8"))
    return _ENC_PREFIX + token.decode("ascii")


def decrypt_value(ciphertext: str) -> str:
    """Plaintext values pass through. An undecryptable secret comes back empty,
    which leaves the bot without a provider until the key is re-entered."""
    if not is_encrypted(ciphertext):
        return ciphertext
    try:
        return _fernet().decrypt(ciphertext[len(_ENC_PREFIX):].encode("ascii")).decode("utf-8")
    except InvalidToken:
        logger.warning("Could not decrypt a stored secret; treating it as unset")
        return ""
