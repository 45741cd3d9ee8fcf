"""
Decrypts NiFi sensitive property values found in flow.xml.

NiFi stores sensitive values as enc{<hex>} where hex = IV (16 bytes) followed
by the AES-GCM ciphertext and tag. The key is derived from
nifi.sensitive.props.key (NIFI_PBKDF2_AES_GCM_256).
"""

import logging
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

import config as app_config

NIFI_STATIC_SALT = b"NiFi Static Salt"
PBKDF2_ITERATIONS = 160000
KEY_LENGTH_BYTES = 32
IV_LENGTH_BYTES = 16

ENC_PREFIX = "enc{"
ENC_SUFFIX = "}"


class NifiDecryptor:
    """Cipher service for enc{...} values. Never raises on bad input."""

    def __init__(self, sensitive_props_key: Optional[str] = None):
        self.sensitive_props_key = (
            sensitive_props_key if sensitive_props_key is not None else app_config.SENSITIVE_PROPS_KEY
        )
        self._aesgcm = None
        self.logger = logging.getLogger(__name__)

    def decrypt(self, cipher_text: Optional[str]) -> Optional[str]:
        """
        Decrypt a flow.xml property value.

        Values not wrapped in enc{...} are returned unchanged. When no key is
        configured or decryption fails, the unwrapped cipher text is returned.
        """
        if cipher_text is None or not cipher_text.strip():
            return cipher_text
        if not (cipher_text.startswith(ENC_PREFIX) and cipher_text.endswith(ENC_SUFFIX)):
            return cipher_text

        raw_cipher = cipher_text[len(ENC_PREFIX):-len(ENC_SUFFIX)]
        if not self.sensitive_props_key:
            self.logger.warning("No sensitive properties key configured; returning cipher text")
            return raw_cipher

        try:
            data = bytes.fromhex(raw_cipher)
            if len(data) <= IV_LENGTH_BYTES:
                raise ValueError("cipher text shorter than IV")
            iv, payload = data[:IV_LENGTH_BYTES], data[IV_LENGTH_BYTES:]
            return self._get_cipher().decrypt(iv, payload, None).decode("utf-8")
        except (ValueError, InvalidTag) as e:
            self.logger.warning(f"Failed to decrypt sensitive value, falling back to cipher text. {str(e)}")
            return raw_cipher

    def _get_cipher(self) -> AESGCM:
        if self._aesgcm is None:
            kdf = PBKDF2HMAC(
                algorithm=hashes.SHA512(),
                length=KEY_LENGTH_BYTES,
                salt=NIFI_STATIC_SALT,
                iterations=PBKDF2_ITERATIONS
            )
            self._aesgcm = AESGCM(kdf.derive(self.sensitive_props_key.encode("utf-8")))
        return self._aesgcm
