# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Yannick Locque (yanuino)

"""Resumable firmware download engine.

The on-disk file is the only record of progress: its size decides whether a
transfer starts fresh, resumes with a Range request, or is already complete.
Failed transfers leave the partial file in place for a later attempt.
"""

from __future__ import annotations

import base64
import binascii
import enum
import logging
import os
from dataclasses import dataclass
from typing import Optional

import requests

from fusproto.client import FUSClient
from fusproto.errors import CorruptTransferError, DownloadError

from .config import DOWNLOAD_CHUNK_SIZE
from .progress import ProgressCounter

logger = logging.getLogger(__name__)


class TransferAction(enum.Enum):
    FRESH = "fresh"
    RESUME = "resume"
    COMPLETE = "complete"


@dataclass(frozen=True)
class FirmwareTransfer:
    """One firmware download.

    Attributes:
        remote_path: Server path + binary name passed to the cloud endpoint.
        out_path: Local file receiving the encrypted bytes.
        total_size: Authoritative size from BinaryInform.
    """

    remote_path: str
    out_path: str
    total_size: int

    def on_disk_size(self) -> int:
        try:
            return os.stat(self.out_path).st_size
        except FileNotFoundError:
            return 0

    def plan(self) -> TransferAction:
        """
        Decide how to proceed from the current on-disk size.

        Raises:
            CorruptTransferError: If the local file is larger than total_size.
        """
        size = self.on_disk_size()
        if size > self.total_size:
            raise CorruptTransferError(self.out_path, size, self.total_size)
        if size == self.total_size:
            return TransferAction.COMPLETE
        if size > 0:
            return TransferAction.RESUME
        return TransferAction.FRESH


@dataclass(frozen=True)
class DownloadResult:
    """Outcome of download().

    Attributes:
        action: What the engine did.
        start_offset: Byte offset the transfer started from.
        written: Bytes written during this call.
        md5: Hex Content-MD5 announced by the server, if any.
    """

    action: TransferAction
    start_offset: int
    written: int
    md5: Optional[str] = None


def content_md5(resp: requests.Response) -> Optional[str]:
    """Hex digest from a base64 Content-MD5 header, or None."""
    value = resp.headers.get("Content-MD5")
    if not value:
        return None
    try:
        return base64.b64decode(value, validate=True).hex()
    except (binascii.Error, ValueError):
        logger.warning("Ignoring malformed Content-MD5 header: %r", value)
        return None


def download(
    client: FUSClient,
    transfer: FirmwareTransfer,
    *,
    counter: Optional[ProgressCounter] = None,
    chunk_size: int = DOWNLOAD_CHUNK_SIZE,
) -> DownloadResult:
    """
    Download (or resume) a firmware file through the FUS cloud endpoint.

    BinaryInitForMass must already have been sent with the same client.

    Args:
        client: Authenticated FUS client.
        transfer: What to fetch and where to write it.
        counter: Optional shared counter, set to the start offset then
            advanced after every chunk written.
        chunk_size: Read size for the response body.

    Returns:
        DownloadResult describing the transfer.

    Raises:
        CorruptTransferError: If the local file exceeds the announced size.
        DownloadError: On read/write failure, a short stream, or a body longer
            than total_size (the file is cut at total_size).
        TransportError, ProtocolError: If the download request itself fails.
    """
    action = transfer.plan()
    start = transfer.on_disk_size() if action is not TransferAction.FRESH else 0
    if counter is not None:
        counter.set(start)
    if action is TransferAction.COMPLETE:
        logger.info("%s already complete (%d bytes)", transfer.out_path, start)
        return DownloadResult(action, start, 0)

    if action is TransferAction.RESUME:
        logger.info(
            "Resuming %s from %.1f%%", transfer.out_path, start / transfer.total_size * 100
        )
    resp = client.stream(transfer.remote_path, start=start)
    md5 = content_md5(resp)
    if action is TransferAction.RESUME and resp.status_code == 200:
        # Range ignored: the body is the whole file
        logger.warning("Server ignored Range request, restarting %s", transfer.out_path)
        action, start = TransferAction.FRESH, 0
        if counter is not None:
            counter.set(0)
    mode = "ab" if action is TransferAction.RESUME else "wb"
    written = 0
    overflow = False
    try:
        with open(transfer.out_path, mode) as f:
            for chunk in resp.iter_content(chunk_size=chunk_size):
                if not chunk:
                    continue
                # the file must never grow past the announced size
                room = transfer.total_size - (start + written)
                if len(chunk) > room:
                    chunk, overflow = chunk[:room], True
                f.write(chunk)
                written += len(chunk)
                if counter is not None:
                    counter.add(len(chunk))
                if overflow:
                    break
    except (requests.RequestException, OSError) as exc:
        raise DownloadError(
            f"Transfer of {transfer.remote_path} interrupted after {start + written} bytes: {exc}"
        ) from exc
    finally:
        resp.close()

    if overflow:
        raise DownloadError(
            f"Server sent more than the announced {transfer.total_size} bytes; "
            f"{transfer.out_path} was cut at that size"
        )
    if start + written != transfer.total_size:
        raise DownloadError(
            f"Incomplete download: got {start + written}, expected {transfer.total_size}"
        )
    return DownloadResult(action, start, written, md5)
