"""AES-256 encryption at rest for converted files.

An encrypted file holds base64(IV || ciphertext) as UTF-8 text. The key is
derived with PBKDF2-HMAC-SHA256 from a configured secret and a fixed salt, so
changing the secret makes previously encrypted files unreadable.

An absent or weak secret is a security policy failure rather than a functional
one: the cipher works with any secret it is given. Refusing to run without a
configured secret is the job of ``AESEncryption.from_config``.
"""

from base64 import b64encode, b64decode
from functools import lru_cache
from pathlib import Path
from typing import Union
import binascii
import logging
import os

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .exceptions import CipherError, ConfigurationError

log = logging.getLogger(__name__)

DEFAULT_SALT = b'converter_x_fixed_salt'
MIN_ITERATIONS = 100000
IV_LENGTH = 16
BLOCK_SIZE_BITS = 128


@lru_cache(maxsize=8)
def derive_key(secret: bytes, salt: bytes = DEFAULT_SALT, iterations: int = MIN_ITERATIONS) -> bytes:
    """Derive a 32-byte key using PBKDF2, once per process for each input."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,  # 32 bytes = 256 bits
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(secret)


class AESEncryption:
    def __init__(self,
        secret: Union[str, bytes],
        salt: bytes = DEFAULT_SALT,
        iterations: int = MIN_ITERATIONS,
        audit=None
    ):
        if secret is None:
            raise CipherError("An encryption secret is required")
        if iterations < MIN_ITERATIONS:
            raise CipherError(f"Key derivation needs at least {MIN_ITERATIONS} iterations")
        if isinstance(secret, str):
            secret = secret.encode()

        self.key = derive_key(secret, salt, iterations)
        self._audit = audit

    @classmethod
    def from_config(cls, settings=None, audit=None) -> "AESEncryption":
        """Build a cipher from configuration, refusing to run without a key."""
        if settings is None:
            from ..config import config as settings
        if not settings.ENCRYPTION_KEY:
            raise ConfigurationError("No ENCRYPTION_KEY set in environment")
        return cls(
            settings.ENCRYPTION_KEY,
            salt=settings.ENCRYPTION_SALT,
            iterations=settings.KDF_ITERATIONS,
            audit=audit
        )

    @property
    def audit(self):
        if self._audit is None:
            from .audit import audit_logger
            self._audit = audit_logger
        return self._audit

    def _cipher(self, iv: bytes) -> Cipher:
        return Cipher(algorithms.AES(self.key), modes.CBC(iv))

    def encrypt_data(self, data: Union[str, bytes]) -> str:
        """Encrypt data using AES-256 in CBC mode with PKCS7 padding."""
        if isinstance(data, str):
            data = data.encode()

        # Fresh IV for every message
        iv = os.urandom(IV_LENGTH)

        padder = padding.PKCS7(BLOCK_SIZE_BITS).padder()
        padded_data = padder.update(data) + padder.finalize()

        encryptor = self._cipher(iv).encryptor()
        ciphertext = encryptor.update(padded_data) + encryptor.finalize()

        log.debug(f"Encrypted {len(data)} bytes")
        return b64encode(iv + ciphertext).decode('utf-8')

    def decrypt_data(self, encrypted_data: Union[str, bytes]) -> bytes:
        """Decrypt data using AES-256 in CBC mode with PKCS7 padding."""
        if isinstance(encrypted_data, str):
            encrypted_data = encrypted_data.encode('utf-8')

        try:
            encrypted_bytes = b64decode(encrypted_data.strip(), validate=True)
        except (binascii.Error, ValueError) as e:
            raise CipherError(f"Encrypted data is not valid base64: {str(e)}") from e

        if len(encrypted_bytes) < IV_LENGTH:
            raise CipherError("Encrypted data is truncated: missing initialization vector")

        iv = encrypted_bytes[:IV_LENGTH]
        ciphertext = encrypted_bytes[IV_LENGTH:]

        try:
            decryptor = self._cipher(iv).decryptor()
            padded_data = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(BLOCK_SIZE_BITS).unpadder()
            data = unpadder.update(padded_data) + unpadder.finalize()
        except ValueError as e:
            raise CipherError(f"Decryption failed: {str(e)}") from e

        log.debug(f"Decrypted {len(data)} bytes")
        return data

    def encrypt_file(self, input_path: Union[str, Path], output_path: Union[str, Path],
                     user_id: str = "system") -> None:
        """Encrypt a file using AES-256."""
        input_path = Path(input_path)
        output_path = Path(output_path)
        try:
            with open(input_path, 'rb') as f:
                data = f.read()

            encrypted_data = self.encrypt_data(data)

            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(encrypted_data)

            self.audit.log_cipher_event(
                user_id=user_id,
                action="encrypt_file",
                input_file=str(input_path),
                output_file=str(output_path),
                size=len(data)
            )

        except Exception as e:
            self.audit.log_error(
                user_id=user_id,
                action="encrypt_file",
                error=e,
                details={"file": str(input_path)}
            )
            raise

    def decrypt_file(self, input_path: Union[str, Path], output_path: Union[str, Path],
                     user_id: str = "system") -> None:
        """Decrypt a file using AES-256."""
        input_path = Path(input_path)
        output_path = Path(output_path)
        try:
            # Base64 text, read as bytes
            with open(input_path, 'rb') as f:
                encrypted_data = f.read()

            decrypted_data = self.decrypt_data(encrypted_data)

            with open(output_path, 'wb') as f:
                f.write(decrypted_data)

            self.audit.log_cipher_event(
                user_id=user_id,
                action="decrypt_file",
                input_file=str(input_path),
                output_file=str(output_path),
                size=len(decrypted_data)
            )

        except Exception as e:
            self.audit.log_error(
                user_id=user_id,
                action="decrypt_file",
                error=e,
                details={"file": str(input_path)}
            )
            raise
