"""
Token encryption — encrypt / decrypt the LinkedIn access token at rest.

Uses Fernet (AES-128-CBC + HMAC-SHA256) from the ``cryptography`` library.
The key comes from ``config.token_encryption_key``
(env var: ``TOKEN_ENCRYPTION_KEY``).

Without a key, encryption is **disabled** and tokens are stored as
plaintext (with a warning).  Generate a key with::

    python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())"
"""

from __future__ import annotations

import logging
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from config.settings import config

logger = logging.getLogger(__name__)

_fernet: Optional[Fernet] = None
_initialised = False


def _cipher() -> Optional[Fernet]:
    """Build the Fernet cipher on first use; ``None`` when disabled."""
    global _fernet, _initialised

    if _initialised:
        return _fernet
    _initialised = True

    key = config.token_encryption_key
    if not key:
        logger.warning("TOKEN_ENCRYPTION_KEY not set — LinkedIn tokens will be stored as plaintext")
        return None

    try:
        _fernet = Fernet(key.encode())
        logger.info("Token encryption enabled (Fernet)")
    except ValueError as exc:
        logger.error("Invalid TOKEN_ENCRYPTION_KEY, encryption disabled: %s", exc)
        _fernet = None
    return _fernet


def reset() -> None:
    """Forget the cached cipher so the next call re-reads the config."""
    global _fernet, _initialised
    _fernet = None
    _initialised = False


def encrypt_token(plaintext: str) -> str:
    """Return the Fernet ciphertext, or ``plaintext`` when disabled."""
    fernet = _cipher()
    if fernet is None:
        return plaintext
    return fernet.encrypt(plaintext.encode()).decode()


def decrypt_token(ciphertext: str) -> str:
    """
    Decrypt a stored token.

    Values written before encryption was enabled are not valid Fernet
    tokens and come back unchanged.
    """
    fernet = _cipher()
    if fernet is None:
        return ciphertext
    try:
        return fernet.decrypt(ciphertext.encode()).decode()
    except InvalidToken:
        return ciphertext


def is_encryption_enabled() -> bool:
    return _cipher() is not None
