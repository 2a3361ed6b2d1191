# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Yannick Locque (yanuino)

"""Firmware transfer: resumable download, progress and fetch workflow.

Main Components:
    - FirmwareTransfer / download: resumable range-based download engine
    - ProgressCounter / ProgressMonitor: shared counter and threaded tqdm bar
    - fetch_firmware: inform → init → download → decrypt in one call
    - decrypt_firmware: suffix-driven ENC2/ENC4 decryption, skipped when done

Example:
    Complete workflow::

        from transfer import fetch_firmware

        result = fetch_firmware("SM-S928B", "EUX", "352976245060954", out_dir="./fw")
        print(result.decrypted_path)

Configuration:
    Set SUSFW_DATA_DIR to change the default download location::

        export SUSFW_DATA_DIR="/path/to/data"
"""

from .config import PATHS
from .engine import DownloadResult, FirmwareTransfer, TransferAction, download
from .progress import ProgressCounter, ProgressMonitor
from .service import FetchResult, decrypt_firmware, fetch_firmware, resolve_output_path
