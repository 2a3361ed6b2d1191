# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Vladislav Tislenko (keklick1337)
# Copyright (c) 2025 Yannick Locque (yanuino)

"""
Readers for BinaryInform answers.

Values sit under ``FUSBody/Results`` (status, latest version) and
``FUSBody/Put/<FIELD>/Data`` (file name, size, model path, logic value).
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Optional, Tuple

from .errors import InformFieldError, InformStatusError

_RESULTS = "./FUSBody/Results"
_PUT = "./FUSBody/Put"


@dataclass(frozen=True)
class InformInfo:
    """What the server reported for one firmware.

    Attributes:
        latest_fw_version: LATEST_FW_VERSION as echoed by the server.
        logic_value_factory: Seed for the ENC4 key.
        filename: BINARY_NAME on the download host.
        path: MODEL_PATH prefix ("" when absent).
        size_bytes: BINARY_BYTE_SIZE, the authoritative transfer size.
    """

    latest_fw_version: str
    logic_value_factory: str
    filename: str
    path: str
    size_bytes: int

    @property
    def remote_path(self) -> str:
        return self.path + self.filename


def get_status(root: ET.Element) -> Optional[int]:
    """Results/Status as an int; None if missing or not numeric."""
    text = (root.findtext(f"{_RESULTS}/Status") or "").strip()
    return int(text) if text.isdigit() else None


def _field(root: ET.Element, path: str, name: str) -> str:
    value = root.findtext(path)
    if not value:
        raise InformFieldError(name)
    return value


def _latest(root: ET.Element) -> str:
    return _field(root, f"{_RESULTS}/LATEST_FW_VERSION/Data", "LATEST_FW_VERSION")


def _put(root: ET.Element, name: str) -> str:
    return _field(root, f"{_PUT}/{name}/Data", name)


def parse_inform(root: ET.Element) -> InformInfo:
    """
    Build an InformInfo from a BinaryInform answer.

    Raises:
        InformStatusError: Status missing or other than 200.
        InformFieldError: A required field is missing, or the size is not an integer.
    """
    status = get_status(root)
    if status != 200:
        raise InformStatusError(status)

    latest = _latest(root)
    logic = _put(root, "LOGIC_VALUE_FACTORY")
    filename = _put(root, "BINARY_NAME")
    try:
        size = int(_put(root, "BINARY_BYTE_SIZE"))
    except ValueError as exc:
        raise InformFieldError("BINARY_BYTE_SIZE") from exc

    return InformInfo(
        latest_fw_version=latest,
        logic_value_factory=logic,
        filename=filename,
        path=root.findtext(f"{_PUT}/MODEL_PATH/Data") or "",
        size_bytes=size,
    )


def get_logic_value(root: ET.Element) -> Tuple[str, str]:
    """(LATEST_FW_VERSION, LOGIC_VALUE_FACTORY); the status is not checked."""
    return _latest(root), _put(root, "LOGIC_VALUE_FACTORY")
