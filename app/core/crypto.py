"""
Symmetric codec for short secrets stored at rest (OTP codes).

Ciphertext format is "ivHex:cipherHex" (AES-256-CBC, PKCS7 padding).
Decryption never raises: legacy plaintext and corrupt values are returned
unchanged so callers can treat them as opaque strings.
"""
import hashlib
import logging
import os

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from app.core.config import ENCRYPTION_KEY

logger = logging.getLogger(__name__)

IV_LENGTH = 16
VALID_KEY_LENGTHS = (16, 24, 32)


def _load_key(raw: str) -> bytes:
    key = raw.encode("utf-8")
    if len(key) not in VALID_KEY_LENGTHS:
        logger.warning("ENCRYPTION_KEY is not a valid AES key length, deriving key with SHA-256")
        key = hashlib.sha256(key).digest()
    return key


_KEY = _load_key(ENCRYPTION_KEY)


def encrypt(plaintext: str) -> str:
    """Encrypt plaintext under the shared key with a fresh random IV."""
    iv = os.urandom(IV_LENGTH)
    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

    encryptor = Cipher(algorithms.AES(_KEY), modes.CBC(iv)).encryptor()
    encrypted = encryptor.update(padded) + encryptor.finalize()
    return f"{iv.hex()}:{encrypted.hex()}"


def decrypt(text: str) -> str:
    """
    Decrypt an "ivHex:cipherHex" value.

    Returns:
        The plaintext, or the input unchanged when it is legacy plaintext
        (no ':'), has an invalid IV, or fails to decrypt.
    """
    if not text:
        return ""

    # Records written before encryption was introduced
    if ":" not in text:
        return text

    try:
        iv_hex, _, encrypted_hex = text.partition(":")
        iv = bytes.fromhex(iv_hex)
        encrypted = bytes.fromhex(encrypted_hex)

        if len(iv) != IV_LENGTH:
            logger.warning("Invalid IV length, returning original text")
            return text

        decryptor = Cipher(algorithms.AES(_KEY), modes.CBC(iv)).decryptor()
        padded = decryptor.update(encrypted) + decryptor.finalize()

        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        plain = unpadder.update(padded) + unpadder.finalize()
        return plain.decode("utf-8")
    except Exception as e:
        logger.error(f"Decryption failed: {e}")
        return text
