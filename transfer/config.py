# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Vladislav Tislenko (keklick1337)
# Copyright (c) 2025 Yannick Locque (yanuino)

"""Transfer settings: read size, progress tick and the default output location.

``SUSFW_DATA_DIR`` overrides the data root (``./data``); downloads land in
``<root>/downloads`` unless the caller picks another directory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DOWNLOAD_CHUNK_SIZE = 32 * 1024
PROGRESS_INTERVAL = 0.1  # seconds


@dataclass(frozen=True)
class Paths:
    """Resolved data locations (created on first write, not here)."""

    data_dir: Path
    downloads_dir: Path


def _resolve_paths() -> Paths:
    root = Path(os.environ.get("SUSFW_DATA_DIR", "./data")).resolve()
    return Paths(data_dir=root, downloads_dir=root / "downloads")


PATHS = _resolve_paths()
