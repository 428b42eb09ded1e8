from __future__ import annotations

import base64
import binascii

from cryptography.hazmat.decrepit.ciphers.algorithms import TripleDES
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, modes

from .errors import CipherError, DecodingError, DecryptError, EncodingError


BLOCK_SIZE = 8  # bytes
KEY_SIZE = 8  # bytes


def _to_key_bytes(key: str | bytes) -> bytes:
    """Return the raw DES key, ASCII-encoding text keys."""
    if isinstance(key, str):
        try:
            key_bytes = key.encode("ascii")
        except UnicodeEncodeError as ex:
            raise CipherError("DES key must be ASCII text") from ex
    else:
        key_bytes = bytes(key)
    if len(key_bytes) != KEY_SIZE:
        raise CipherError(
            f"Specified key is not a valid size for DES: expected {KEY_SIZE} bytes, got {len(key_bytes)}"
        )
    return key_bytes


class DesEcbCipher:
    """
    Single-DES in ECB mode with PKCS#7 padding, base64 text in and out.

    Notes
    - The 8-byte key is repeated into a 24-byte TripleDES key (K1 == K2 == K3),
      which is single DES; OpenSSL only exposes DES through TripleDES.
    - ECB has no IV: equal plaintexts always produce equal ciphertexts.
    - There is no authentication. A wrong key usually, but not always, shows up
      as a padding failure.
    """

    def __init__(self, key: str | bytes) -> None:
        self._cipher = Cipher(TripleDES(_to_key_bytes(key) * 3), modes.ECB())

    def encrypt(self, plaintext: str) -> str:
        try:
            data = plaintext.encode("utf-8")
        except UnicodeEncodeError as ex:
            raise EncodingError("Plaintext is not encodable as UTF-8") from ex

        padder = padding.PKCS7(BLOCK_SIZE * 8).padder()
        padded = padder.update(data) + padder.finalize()
        encryptor = self._cipher.encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
        return base64.b64encode(ciphertext).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        try:
            raw = base64.b64decode(ciphertext, validate=True)
        except (binascii.Error, ValueError) as ex:
            raise DecodingError("Stored value is not valid base64") from ex

        if not raw or len(raw) % BLOCK_SIZE:
            raise DecryptError(
                f"Ciphertext length {len(raw)} is not a positive multiple of {BLOCK_SIZE}"
            )

        decryptor = self._cipher.decryptor()
        padded = decryptor.update(raw) + decryptor.finalize()
        unpadder = padding.PKCS7(BLOCK_SIZE * 8).unpadder()
        try:
            data = unpadder.update(padded) + unpadder.finalize()
        except ValueError as ex:
            raise DecryptError("Invalid padding (wrong key or corrupted data)") from ex

        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as ex:
            raise DecryptError("Decrypted bytes are not valid UTF-8") from ex
