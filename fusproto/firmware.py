# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Vladislav Tislenko (keklick1337)
# Copyright (c) 2025 Yannick Locque (yanuino)

"""
Version metadata helpers for Samsung FUS.

Fetches the out-of-band version.xml document (latest version and available
upgrades with their sizes) and normalizes firmware version codes.

Functions:
- normalize_vercode: Normalize a version code to its canonical slash form.
- fetch_version_xml: Download the raw version.xml document.
- parse_version_info: Parse version.xml into a VersionInfo.
- get_version_info: Fetch and parse in one call.
- get_latest_version: Latest normalized version for a model/region.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import List, Optional

import requests

from .config import DEFAULT_CONFIG, FUSConfig
from .errors import (
    FOTAModelOrRegionNotFound,
    FOTANoFirmware,
    FOTAParsingError,
    ProtocolError,
    TransportError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FirmwareSpec:
    """A firmware version with its package size (0 when unknown)."""

    version: str
    size: int = 0


@dataclass(frozen=True)
class VersionInfo:
    """Parsed version.xml content.

    Attributes:
        latest: Latest firmware, or None when the server lists none.
        upgrades: Upgrade entries in document order.
    """

    latest: Optional[FirmwareSpec]
    upgrades: List[FirmwareSpec] = field(default_factory=list)


def normalize_vercode(vercode: str) -> str:
    """
    Normalize a firmware version code to its canonical slash form.

    A three-part code gets a fourth part equal to the first, unless its third
    part is empty, in which case the third part is filled with the first. An
    empty third part of a four-part code is filled the same way.

    Args:
        vercode: Firmware version string, e.g. "G900FXXU1ANE2/G900FOXA1ANE2/G900FXXU1ANE2".

    Returns:
        The normalized version string.
    """
    parts = vercode.split("/")
    if len(parts) == 3 and parts[2] != "":
        parts.append(parts[0])
    if len(parts) >= 3 and parts[2] == "":
        parts[2] = parts[0]
    return "/".join(parts)


def fetch_version_xml(model: str, region: str, cfg: FUSConfig = DEFAULT_CONFIG) -> str:
    """
    Download the version.xml document for a model/region.

    Raises:
        FOTAModelOrRegionNotFound: On HTTP 403.
        ProtocolError: On any other HTTP status >= 400.
        TransportError: If no HTTP response was received.
    """
    url = f"{cfg.fota_url}/{region}/{model}/version.xml"
    try:
        req = requests.get(
            url,
            headers={"User-Agent": cfg.user_agent},
            timeout=cfg.version_timeout,
        )
    except requests.RequestException as exc:
        raise TransportError(url, exc) from exc
    if req.status_code == 403:
        raise FOTAModelOrRegionNotFound(model, region)
    if req.status_code >= 400:
        raise ProtocolError(req.status_code, url=url)
    return req.text


def parse_version_info(text: str, model: str = "", region: str = "") -> VersionInfo:
    """
    Parse a version.xml document.

    Version strings are normalized; a missing or non-numeric fwsize attribute
    yields size 0.

    Raises:
        FOTAParsingError: If the document is not well-formed XML.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise FOTAParsingError("versioninfo", model, region) from exc

    latest_text = (root.findtext("./firmware/version/latest") or "").strip()
    latest = FirmwareSpec(normalize_vercode(latest_text)) if latest_text else None

    upgrades = []
    for value in root.findall("./firmware/version/upgrade/value"):
        ver = (value.text or "").strip()
        if not ver:
            continue
        size_attr = value.get("fwsize", "")
        size = int(size_attr) if size_attr.isdigit() else 0
        upgrades.append(FirmwareSpec(normalize_vercode(ver), size))
    return VersionInfo(latest=latest, upgrades=upgrades)


def get_version_info(model: str, region: str, cfg: FUSConfig = DEFAULT_CONFIG) -> VersionInfo:
    """
    Fetch and parse version metadata for a model/region.

    Args:
        model: Device model identifier (e.g. "SM-S928B").
        region: CSC/region code.

    Returns:
        VersionInfo with latest and upgrade entries.
    """
    info = parse_version_info(fetch_version_xml(model, region, cfg), model, region)
    logger.debug(
        "version.xml for %s/%s: latest=%s, %d upgrade(s)",
        model,
        region,
        info.latest.version if info.latest else None,
        len(info.upgrades),
    )
    return info


def get_latest_version(model: str, region: str, cfg: FUSConfig = DEFAULT_CONFIG) -> str:
    """
    Query the FOTA endpoint and return the latest firmware version code.

    Args:
        model: Device model identifier (e.g. "SM-G900F").
        region: CSC/region code.

    Returns:
        Normalized version code string.

    Raises:
        FOTANoFirmware: If no latest version is listed.
        FOTAModelOrRegionNotFound: If the endpoint returns 403.
    """
    info = get_version_info(model, region, cfg)
    if info.latest is None:
        raise FOTANoFirmware(model, region)
    return info.latest.version
