# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Yannick Locque (yanuino)
"""
Firmware payload decryption.

The scheme is named by the file suffix: ``.enc2`` keys are derived locally
from region, model and version; ``.enc4`` keys need one BinaryInform round
trip to fetch the logic value. Payloads are AES-ECB, PKCS#7 padded once at
the very end.
"""

from __future__ import annotations

import hashlib
import logging
import os
from typing import BinaryIO, Callable, Optional

from .client import FUSClient
from .crypto import BLOCK_SIZE, logic_check, new_block_cipher, pkcs_unpad
from .errors import DecryptionKeyError, DeviceIdRequired, InformFieldError, InvalidBlockSize
from .firmware import normalize_vercode
from .messages import build_binary_inform
from .responses import get_logic_value

logger = logging.getLogger(__name__)

ENC_SUFFIXES = {".enc2": 2, ".enc4": 4}

ProgressCallback = Callable[[int, int], None]


def enc_version(filename: str) -> Optional[int]:
    """2 or 4 for ``.enc2``/``.enc4`` names, None for anything else."""
    for suffix, ver in ENC_SUFFIXES.items():
        if filename.endswith(suffix):
            return ver
    return None


def strip_enc_suffix(path: str) -> str:
    """
    Path of the decrypted output for an encrypted file.

    Args:
        path: Encrypted file path.

    Returns:
        ``path`` without its ``.enc2``/``.enc4`` suffix, or unchanged if it has none.
    """
    for suffix in ENC_SUFFIXES:
        if path.endswith(suffix):
            return path[: -len(suffix)]
    return path


def get_v2_key(version: str, model: str, region: str) -> bytes:
    """ENC2 key: MD5 of ``"<region>:<model>:<version>"``."""
    return hashlib.md5(f"{region}:{model}:{version}".encode()).digest()


def get_v4_key_from_logic(fwver: str, logic_value: str) -> bytes:
    """ENC4 key: MD5 of ``logic_check(fwver, logic_value)``."""
    return hashlib.md5(logic_check(fwver, logic_value).encode()).digest()


def get_v4_key(
    version: str, model: str, region: str, device_id: str, client: FUSClient | None = None
) -> bytes:
    """
    Fetch the ENC4 key with a BinaryInform request.

    The server only answers for a real device, so an IMEI or serial is
    mandatory. ``version`` is normalized before it is sent.

    Args:
        client: Session to reuse; a fresh one is bootstrapped when omitted.

    Raises:
        DeviceIdRequired: ``device_id`` is empty.
        DecryptionKeyError: The answer lacks LATEST_FW_VERSION or LOGIC_VALUE_FACTORY.
        FUSError: The request itself failed.
    """
    if not device_id:
        raise DeviceIdRequired()
    client = client or FUSClient()
    payload = build_binary_inform(normalize_vercode(version), model, region, device_id, client.nonce)
    resp = client.inform(payload)
    try:
        fwver, logic_value = get_logic_value(resp)
    except InformFieldError as exc:
        raise DecryptionKeyError(model, region, device_id) from exc
    return get_v4_key_from_logic(fwver, logic_value)


def get_key(
    enc_ver: int,
    version: str,
    model: str,
    region: str,
    device_id: str = "",
    client: FUSClient | None = None,
) -> bytes:
    """
    Key for encryption scheme ``enc_ver``.

    Args:
        enc_ver: 2 or 4, as returned by :func:`enc_version`.
        device_id: Required for scheme 4 only.
        client: Session reused for the scheme 4 round trip.

    Returns:
        16-byte AES key.

    Raises:
        ValueError: Unknown scheme.
    """
    if enc_ver == 2:
        return get_v2_key(version, model, region)
    if enc_ver == 4:
        return get_v4_key(version, model, region, device_id, client)
    raise ValueError(f"Unknown encryption version: {enc_ver}")


def decrypt_stream(
    fin: BinaryIO,
    fout: BinaryIO,
    key: bytes,
    total: int,
    *,
    chunk_size: int = 4096,
    progress_cb: Optional[ProgressCallback] = None,
) -> None:
    """
    Decrypt ``total`` bytes from ``fin`` into ``fout``.

    Only the chunk that reaches ``total`` is unpadded. ``progress_cb(done,
    total)`` fires whenever another tenth of the input is processed, and
    once at the end.

    Raises:
        InvalidBlockSize: ``total`` is not a multiple of 16 (nothing is read).
    """
    if total % BLOCK_SIZE != 0:
        raise InvalidBlockSize(total)
    cipher = new_block_cipher(key)
    done = 0
    decile = 0
    while done < total:
        block = fin.read(min(chunk_size, total - done))
        if not block:
            break
        plain = cipher.decrypt(block)
        done += len(block)
        if done >= total:
            plain = pkcs_unpad(plain)
        fout.write(plain)
        if progress_cb and (done * 10 // total > decile or done >= total):
            decile = done * 10 // total
            progress_cb(done, total)


def decrypt_file(
    enc_path: str,
    out_path: str,
    *,
    key: bytes,
    progress_cb: Optional[ProgressCallback] = None,
) -> None:
    """
    Decrypt ``enc_path`` into ``out_path``; the input is left in place.

    Raises:
        InvalidBlockSize: Input size not a multiple of 16. ``out_path`` is
            not created in that case.
        OSError: The input cannot be read or the output written.
    """
    size = os.stat(enc_path).st_size
    if size % BLOCK_SIZE != 0:
        raise InvalidBlockSize(size)
    logger.info("Decrypting %s -> %s (%d bytes)", enc_path, out_path, size)
    with open(enc_path, "rb") as src, open(out_path, "wb") as dst:
        decrypt_stream(src, dst, key, size, progress_cb=progress_cb)
