# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Vladislav Tislenko (keklick1337)
# Copyright (c) 2025 Yannick Locque (yanuino)
"""
Cipher primitives and the NONCE handshake.

The auth layer uses AES in chained (CBC) mode with the IV taken from the
first 16 bytes of the key, never transmitted. Firmware payloads use
independent-block (ECB) mode, see :func:`new_block_cipher`.
"""

from __future__ import annotations

import base64
import binascii
import logging

from Crypto.Cipher import AES

from .config import KEY_1, KEY_2
from .errors import AuthError, InvalidKeyLength

logger = logging.getLogger(__name__)

BLOCK_SIZE = 16


def _check_key(key: bytes) -> None:
    if len(key) not in (16, 24, 32):
        raise InvalidKeyLength(len(key))


def pkcs_pad(data: bytes) -> bytes:
    """PKCS#7-pad to the block size; aligned input gains a whole block."""
    n = BLOCK_SIZE - len(data) % BLOCK_SIZE
    return data + bytes([n]) * n


def pkcs_unpad(data: bytes) -> bytes:
    """
    Strip PKCS#7 padding without validating it.

    The last byte is taken as the pad length. Empty input, or a length larger
    than the buffer, returns the data unchanged.
    """
    if not data:
        return data
    n = data[-1]
    if n > len(data):
        return data
    return data[:-n] if n else data


def aes_cbc_encrypt(inp: bytes, key: bytes) -> bytes:
    """
    Pad and encrypt ``inp`` in CBC mode, IV = ``key[:16]``.

    Raises:
        InvalidKeyLength: For keys that are not 16, 24 or 32 bytes.
    """
    _check_key(key)
    return AES.new(key, AES.MODE_CBC, key[:BLOCK_SIZE]).encrypt(pkcs_pad(inp))


def aes_cbc_decrypt(inp: bytes, key: bytes) -> bytes:
    """Inverse of :func:`aes_cbc_encrypt`. ``inp`` must be block-aligned."""
    _check_key(key)
    return pkcs_unpad(AES.new(key, AES.MODE_CBC, key[:BLOCK_SIZE]).decrypt(inp))


def new_block_cipher(key: bytes):
    """ECB cipher for firmware payloads (key length checked)."""
    _check_key(key)
    return AES.new(key, AES.MODE_ECB)


def derive_key(nonce: str) -> bytes:
    """
    Per-nonce signing key.

    Each of the first 16 nonce characters selects ``KEY_1[ord(c) % 16]``;
    ``KEY_2`` is appended, giving 32 bytes.

    Raises:
        AuthError: If the nonce has fewer than 16 characters.
    """
    if len(nonce) < 16:
        raise AuthError(f"Nonce too short for key derivation ({len(nonce)} chars)")
    head = "".join(KEY_1[ord(c) % 16] for c in nonce[:16])
    return (head + KEY_2).encode()


def make_signature(nonce: str) -> str:
    """Authorization signature: base64 of the nonce encrypted under its derived key."""
    raw = aes_cbc_encrypt(nonce.encode(), derive_key(nonce))
    return base64.b64encode(raw).decode()


def decrypt_nonce(enc_nonce: str) -> str:
    """
    Recover the plaintext nonce from a ``NONCE`` response header.

    Raises:
        AuthError: If the header is not base64 or not block-aligned ciphertext.
    """
    try:
        data = base64.b64decode(enc_nonce, validate=True)
        return aes_cbc_decrypt(data, KEY_1.encode()).decode()
    except (binascii.Error, ValueError) as exc:
        raise AuthError(f"Could not decrypt server NONCE: {exc}") from exc


def encrypt_nonce(nonce: str) -> str:
    # server side of the handshake; used to build test fixtures
    return base64.b64encode(aes_cbc_encrypt(nonce.encode(), KEY_1.encode())).decode()


def logic_check(inp: str, nonce: str) -> str:
    """
    Logic-check value sent with inform/init requests.

    For every nonce character ``c`` the result takes ``inp[ord(c) & 0xF]``, so
    it is exactly as long as ``nonce``. Inputs shorter than 16 characters
    yield ``""``, which the server accepts.
    """
    if len(inp) < 16:
        logger.warning("logic_check input shorter than 16 chars (%r), sending empty value", inp)
        return ""
    return "".join(inp[ord(c) & 0xF] for c in nonce)
