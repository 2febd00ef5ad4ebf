"""Decryption of ``ENC(...)`` tokens in serialized configuration.

A token is the literal text ``ENC(<base64>)`` anywhere inside a document.
The payload is AES-128 ciphertext (ECB mode, PKCS7 padding) keyed by the
16-byte salt configured under ``fw.adv.salt``. Decryption runs on the
serialized form of a section before it is parsed into typed models, so any
string field at any depth may be encrypted.
"""

import base64
import binascii
import re
from collections.abc import Callable
from typing import Any

import structlog

from tardis.errors import BadRequestError, DependencyMissingError, FormatError

logger = structlog.get_logger(__name__)

SALT_LENGTH = 16
ENC_TOKEN_PATTERN = re.compile(r"ENC\((?P<payload>[A-Za-z0-9+/]*={0,2})\)")


def _cipher(salt: str) -> Any:
    """Build the AES/ECB cipher for a salt."""
    key = salt.encode("utf-8")
    if len(key) != SALT_LENGTH:
        raise BadRequestError(
            f"[Tardis.Config] [salt] Length must be {SALT_LENGTH} bytes, got {len(key)}"
        )

    try:
        from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
    except ImportError as e:
        raise DependencyMissingError(
            "[Tardis.Config] Configuration encryption requires the 'cryptography' package"
        ) from e

    return Cipher(algorithms.AES(key), modes.ECB())


def _decrypt_payload(cipher: Any, payload: str) -> str:
    from cryptography.hazmat.primitives import padding

    try:
        ciphertext = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise FormatError(f"[Tardis.Config] Malformed encrypted value ENC({payload}): {e}") from e

    if not ciphertext or len(ciphertext) % 16:
        raise FormatError(
            f"[Tardis.Config] Malformed encrypted value ENC({payload}): "
            "ciphertext is not a whole number of AES blocks"
        )

    decryptor = cipher.decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()
    unpadder = padding.PKCS7(128).unpadder()
    try:
        plain = unpadder.update(padded) + unpadder.finalize()
        return plain.decode("utf-8")
    except (ValueError, UnicodeDecodeError) as e:
        raise FormatError(
            f"[Tardis.Config] Decryption of ENC({payload}) failed, check the [salt]"
        ) from e


def decrypt(blob: str, salt: str, quote: Callable[[str], str] | None = None) -> str:
    """Replace every ``ENC(...)`` token in blob with its plaintext.

    Surrounding text is preserved verbatim. The salt is validated before any
    token is touched, and a single bad token fails the whole blob.

    Args:
        blob: Serialized configuration
        salt: 16-byte symmetric key
        quote: Optional escaping applied to each plaintext before it is
            substituted, e.g. JSON string escaping

    Returns:
        The blob with all tokens replaced

    Raises:
        BadRequestError: If the salt is not exactly 16 bytes
        FormatError: If any token cannot be decoded or decrypted
        DependencyMissingError: If the cryptography package is not installed
    """
    cipher = _cipher(salt)

    count = 0

    def _replace(match: re.Match[str]) -> str:
        nonlocal count
        plain = _decrypt_payload(cipher, match.group("payload"))
        count += 1
        return quote(plain) if quote else plain

    result = ENC_TOKEN_PATTERN.sub(_replace, blob)
    if count:
        logger.debug("config_values_decrypted", count=count)
    return result


def encrypt(plaintext: str, salt: str) -> str:
    """Encrypt plaintext and return the base64 payload for an ENC token."""
    from cryptography.hazmat.primitives import padding

    cipher = _cipher(salt)
    padder = padding.PKCS7(128).padder()
    padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
    encryptor = cipher.encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    return base64.b64encode(ciphertext).decode("ascii")


def encrypt_token(plaintext: str, salt: str) -> str:
    """Encrypt plaintext into a complete ``ENC(...)`` token."""
    return f"ENC({encrypt(plaintext, salt)})"
