# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Yannick Locque (yanuino)

"""Firmware fetch workflow.

This module sequences the FUS calls for one firmware: version lookup,
BinaryInform, BinaryInitForMass, resumable download and automatic decryption.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from fusproto.client import FUSClient
from fusproto.decrypt import decrypt_file, enc_version, get_key, strip_enc_suffix
from fusproto.errors import DecryptError, InformStatusError
from fusproto.firmware import get_latest_version, normalize_vercode
from fusproto.messages import build_binary_inform, build_binary_init
from fusproto.responses import InformInfo, get_status, parse_inform

from .config import PATHS
from .engine import DownloadResult, FirmwareTransfer, TransferAction, download
from .progress import ProgressCounter, ProgressMonitor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchResult:
    """Outcome of fetch_firmware().

    Attributes:
        version: Normalized firmware version that was fetched.
        info: BinaryInform metadata.
        encrypted_path: Local path of the encrypted file.
        decrypted_path: Local path of the decrypted file, if it exists.
        download: Download result, or None if the firmware was already decrypted.
    """

    version: str
    info: InformInfo
    encrypted_path: str
    decrypted_path: Optional[str]
    download: Optional[DownloadResult]


def resolve_output_path(out_dir: Optional[str], out_file: Optional[str], filename: str) -> str:
    """
    Pick the local path for a downloaded firmware file.

    ``out_file`` wins; if it names an existing directory the server file name
    is appended. Otherwise ``out_dir/filename``, falling back to the
    configured downloads directory.
    """
    if out_file:
        if os.path.isdir(out_file):
            return os.path.join(out_file, filename)
        return out_file
    return os.path.join(out_dir or str(PATHS.downloads_dir), filename)


def query_firmware(
    client: FUSClient, version: str, model: str, region: str, device_id: str
) -> InformInfo:
    """
    Send BinaryInform for a version and parse the answer.

    Raises:
        InformError: If the status is not 200 or fields are missing.
    """
    root = client.inform(build_binary_inform(version, model, region, device_id, client.nonce))
    info = parse_inform(root)
    logger.info(
        "Firmware %s: %s (%d bytes)", info.latest_fw_version, info.filename, info.size_bytes
    )
    return info


def init_download(client: FUSClient, filename: str) -> None:
    """
    Authorize the download of ``filename`` (BinaryInitForMass).

    Raises:
        InformStatusError: If the answer carries a status other than 200.
    """
    root = client.init(build_binary_init(filename, client.nonce))
    status = get_status(root)
    if status != 200:
        raise InformStatusError(status, request="BinaryInitForMass")


def _log_decrypt_progress(done: int, total: int) -> None:
    logger.info("Decrypting: %.1f%%", done / total * 100)


def decrypt_firmware(
    enc_path: str,
    version: str,
    model: str,
    region: str,
    device_id: str = "",
    *,
    client: FUSClient | None = None,
    remove_encrypted: bool = True,
    progress_cb: Optional[Callable[[int, int], None]] = _log_decrypt_progress,
) -> str:
    """
    Decrypt a downloaded .enc2/.enc4 file next to itself.

    Does nothing when the decrypted file already exists. The key scheme is
    chosen from the file suffix; ENC4 costs one BinaryInform round trip.

    Args:
        enc_path: Encrypted file path.
        version: Firmware version the file belongs to.
        model: Device model identifier.
        region: CSC/region code.
        device_id: IMEI or serial (required for ENC4).
        client: Optional client reused for the ENC4 round trip.
        remove_encrypted: Delete the encrypted file after a successful decrypt.
        progress_cb: Optional callback(done_bytes, total_bytes).

    Returns:
        Path of the decrypted file.

    Raises:
        DecryptError: If the suffix is unknown or decryption fails.
        FUSError: If the ENC4 key round trip fails.
    """
    enc_ver = enc_version(enc_path)
    if enc_ver is None:
        raise DecryptError(f"Not an encrypted firmware file: {enc_path}")
    dec_path = strip_enc_suffix(enc_path)
    if os.path.exists(dec_path):
        logger.info("%s exists, skipping decrypt", dec_path)
        return dec_path
    key = get_key(enc_ver, version, model, region, device_id, client)
    decrypt_file(enc_path, dec_path, key=key, progress_cb=progress_cb)
    if remove_encrypted:
        os.remove(enc_path)
    return dec_path


def fetch_firmware(
    model: str,
    region: str,
    device_id: str,
    version: Optional[str] = None,
    *,
    out_dir: Optional[str] = None,
    out_file: Optional[str] = None,
    client: FUSClient | None = None,
    auto_decrypt: bool = True,
    show_progress: bool = True,
) -> FetchResult:
    """
    Complete workflow: resolve version, download (resuming), then decrypt.

    Args:
        model: Device model identifier.
        region: CSC/region code.
        device_id: IMEI or serial.
        version: Firmware version; latest from version.xml when None.
        out_dir: Output directory (see resolve_output_path).
        out_file: Output file or directory (see resolve_output_path).
        client: Optional FUS client (one per concurrent transfer).
        auto_decrypt: Decrypt after download and remove the encrypted file.
        show_progress: Render a progress bar during the download.

    Returns:
        FetchResult with local paths and transfer details.
    """
    version = normalize_vercode(version) if version else get_latest_version(model, region)
    client = client or FUSClient()
    info = query_firmware(client, version, model, region, device_id)

    out = resolve_output_path(out_dir, out_file, info.filename)
    Path(out).parent.mkdir(parents=True, exist_ok=True)
    dec_path = strip_enc_suffix(out)
    if dec_path != out and os.path.exists(dec_path):
        logger.info("Already decrypted: %s", dec_path)
        return FetchResult(version, info, out, dec_path, None)

    transfer = FirmwareTransfer(info.remote_path, out, info.size_bytes)
    if transfer.plan() is TransferAction.COMPLETE:
        logger.info("%s already downloaded", out)
        result = download(client, transfer)
    else:
        init_download(client, info.filename)
        # resumed bytes are already on disk, not transferred now
        counter = ProgressCounter(transfer.on_disk_size())
        with ProgressMonitor(counter, info.size_bytes, disable=not show_progress):
            result = download(client, transfer, counter=counter)
        if result.md5:
            logger.debug("Content-MD5: %s", result.md5)

    decrypted = None
    if auto_decrypt and enc_version(out) is not None:
        decrypted = decrypt_firmware(
            out, version, model, region, device_id, client=client, remove_encrypted=True
        )
    return FetchResult(version, info, out, decrypted, result)
