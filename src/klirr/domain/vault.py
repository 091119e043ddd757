"""At-rest protection of SMTP app passwords.

Key derivation: PBKDF2-HMAC-SHA256 turns the passphrase into a 32-byte
intermediate, which HKDF-SHA256 (keyed by the same 16-byte salt) expands
into the AES-256-GCM key. The iteration count is stored next to the
ciphertext so it can be raised later without breaking existing files.
"""

import logging
import os
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from klirr.domain.entities import EncryptedAppPassword
from klirr.domain.errors import DecryptionFailed, InvalidKeyDerivation

logger = logging.getLogger("klirr.vault")

KDF_ITERATIONS = 600_000
KEY_LENGTH = 32
HKDF_INFO = b"klirr email encryption"


def _wipe(buffer: bytearray) -> None:
    for i in range(len(buffer)):
        buffer[i] = 0


def derive_key(passphrase: str, salt: bytes, iterations: int) -> bytearray:
    """Derive the AES-256 key. The caller must wipe the returned buffer.

    Raises:
        InvalidKeyDerivation: If the salt length or iteration count is unusable
    """
    if iterations < 1:
        raise InvalidKeyDerivation(f"KDF iterations must be positive, got {iterations}")
    if len(salt) != EncryptedAppPassword.SALT_LENGTH:
        raise InvalidKeyDerivation(
            f"Salt must be {EncryptedAppPassword.SALT_LENGTH} bytes, got {len(salt)}"
        )

    secret = bytearray(passphrase.encode("utf-8"))
    try:
        pbkdf2 = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_LENGTH,
            salt=salt,
            iterations=iterations,
        )
        intermediate = bytearray(pbkdf2.derive(bytes(secret)))
        try:
            hkdf = HKDF(algorithm=hashes.SHA256(), length=KEY_LENGTH, salt=salt, info=HKDF_INFO)
            return bytearray(hkdf.derive(bytes(intermediate)))
        finally:
            _wipe(intermediate)
    finally:
        _wipe(secret)


class CredentialVault:
    """Seal and open app passwords with a user-supplied passphrase."""

    def __init__(self, kdf_iterations: int = KDF_ITERATIONS):
        """Initialize the vault.

        Args:
            kdf_iterations: PBKDF2 iterations used for newly sealed passwords
        """
        self.kdf_iterations = kdf_iterations

    def seal(
        self,
        plaintext: str,
        passphrase: str,
        salt: Optional[bytes] = None,
        nonce: Optional[bytes] = None,
    ) -> EncryptedAppPassword:
        """Encrypt ``plaintext`` under a key derived from ``passphrase``.

        Args:
            plaintext: App password to protect
            passphrase: Encryption passphrase
            salt: Fixed salt, only for deterministic tests
            nonce: Fixed nonce, only for deterministic tests

        Returns:
            Sealed box with fresh random salt and nonce unless given
        """
        salt = os.urandom(EncryptedAppPassword.SALT_LENGTH) if salt is None else salt
        nonce = os.urandom(EncryptedAppPassword.NONCE_LENGTH) if nonce is None else nonce

        key = derive_key(passphrase, salt, self.kdf_iterations)
        data = bytearray(plaintext.encode("utf-8"))
        try:
            ciphertext = AESGCM(bytes(key)).encrypt(nonce, bytes(data), None)
        finally:
            _wipe(key)
            _wipe(data)

        logger.debug("Sealed app password with %d KDF iterations", self.kdf_iterations)
        return EncryptedAppPassword(
            ciphertext=ciphertext,
            nonce=nonce,
            salt=salt,
            kdf_iterations=self.kdf_iterations,
        )

    def open(self, sealed: EncryptedAppPassword, passphrase: str) -> str:
        """Decrypt a sealed app password.

        Raises:
            DecryptionFailed: Wrong passphrase or tampered data; the two
                cannot be told apart
            InvalidKeyDerivation: If the stored KDF parameters are unusable
        """
        key = derive_key(passphrase, sealed.salt, sealed.kdf_iterations)
        try:
            plaintext = bytearray(AESGCM(bytes(key)).decrypt(sealed.nonce, sealed.ciphertext, None))
        except InvalidTag:
            raise DecryptionFailed("Failed to decrypt the app password, wrong passphrase?")
        finally:
            _wipe(key)

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError:
            raise DecryptionFailed("Failed to decrypt the app password, wrong passphrase?")
        finally:
            _wipe(plaintext)

    def reseal(
        self, sealed: EncryptedAppPassword, old_passphrase: str, new_passphrase: str
    ) -> EncryptedAppPassword:
        """Re-encrypt under a new passphrase with fresh salt and nonce."""
        return self.seal(self.open(sealed, old_passphrase), new_passphrase)
