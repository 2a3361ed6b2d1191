# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Vladislav Tislenko (keklick1337)
# Copyright (c) 2025 Yannick Locque (yanuino)

"""
FUS XML message builders.

Provides helpers to construct XML payloads used by the FUS protocol
(nonce bootstrap, BinaryInform, BinaryInitForMass). These builders return raw
XML bytes ready to be posted to the FUS endpoints.

Field order inside <Put> feeds the server-side logic check, so every message
is built from an explicit ordered list of (tag, value) pairs.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import List, Tuple

from .crypto import logic_check

Fields = List[Tuple[str, str]]

PROTO_VERSION = "1.0"
CLIENT_PRODUCT = "Smart Switch"
CLIENT_VERSION = "4.3.23123_1"
DEVICE_PLATFORM = "Android"

# Extra BinaryInform fields for multi-country regions: (CC code, MCC, MNC).
REGION_FIELDS = {
    "EUX": ("DE", "262", "01"),
    "EUY": ("RS", "220", "01"),
}


def _hdr(root: ET.Element) -> None:
    """
    Add a standard FUSHdr header to a message.

    Args:
        root: Root XML element (<FUSMsg>).
    """
    hdr = ET.SubElement(root, "FUSHdr")
    ET.SubElement(hdr, "ProtoVer").text = PROTO_VERSION


def _body_put(root: ET.Element, fields: Fields) -> None:
    """
    Add a FUSBody/Put section with tag→value fields, in list order.

    Args:
        root: Root XML element (<FUSMsg>).
        fields: Ordered (tag, value) pairs to include under Put/<tag>/Data.
    """
    body = ET.SubElement(root, "FUSBody")
    put = ET.SubElement(body, "Put")
    for tag, val in fields:
        e = ET.SubElement(put, tag)
        ET.SubElement(e, "Data").text = str(val)


def serialize(fields: Fields) -> bytes:
    """
    Wrap ordered fields in the FUSMsg envelope.

    Args:
        fields: Ordered (tag, value) pairs.

    Returns:
        Raw XML payload as bytes.
    """
    m = ET.Element("FUSMsg")
    _hdr(m)
    _body_put(m, fields)
    return ET.tostring(m)


def binary_inform_fields(fwv: str, model: str, region: str, device_id: str, nonce: str) -> Fields:
    """
    Ordered BinaryInform fields, including region extras for EUX/EUY.

    Args:
        fwv: Normalized firmware version code.
        model: Device model identifier.
        region: CSC/region code.
        device_id: Device IMEI or Serial number.
        nonce: Current FUS nonce.
    """
    fields: Fields = [
        ("ACCESS_MODE", "2"),
        ("BINARY_NATURE", "1"),
        ("CLIENT_PRODUCT", CLIENT_PRODUCT),
        ("DEVICE_FW_VERSION", fwv),
        ("DEVICE_LOCAL_CODE", region),
        ("DEVICE_MODEL_NAME", model),
        ("UPGRADE_VARIABLE", "0"),
        ("OBEX_SUPPORT", "0"),
        ("DEVICE_IMEI_PUSH", device_id),
        ("DEVICE_PLATFORM", DEVICE_PLATFORM),
        ("CLIENT_VERSION", CLIENT_VERSION),
        ("LOGIC_CHECK", logic_check(fwv, nonce)),
    ]
    extra = REGION_FIELDS.get(region)
    if extra:
        cc, mcc, mnc = extra
        fields += [
            ("DEVICE_AID_CODE", region),
            ("DEVICE_CC_CODE", cc),
            ("MCC_NUM", mcc),
            ("MNC_NUM", mnc),
        ]
    return fields


def build_binary_inform(fwv: str, model: str, region: str, device_id: str, nonce: str) -> bytes:
    """
    Build a BinaryInform request payload.

    Args:
        fwv: Normalized firmware version code.
        model: Device model identifier.
        region: CSC/region code.
        device_id: Device IMEI or Serial number.
        nonce: Current FUS nonce.

    Returns:
        Raw XML payload as bytes.
    """
    return serialize(binary_inform_fields(fwv, model, region, device_id, nonce))


def logic_check_input(filename: str) -> str:
    """
    Logic-check input for a binary file name.

    The extension after the last '.' is dropped; the last 16 characters of the
    remainder are used, or the whole remainder when it is shorter.
    """
    base = filename.rsplit(".", 1)[0] if "." in filename else filename
    if len(base) < 16:
        return base
    return base[-16:]


def build_binary_init(filename: str, nonce: str) -> bytes:
    """
    Build a BinaryInitForMass request payload.

    Args:
        filename: Firmware file name (including extension).
        nonce: Current FUS nonce.

    Returns:
        Raw XML payload as bytes.
    """
    return serialize(
        [
            ("BINARY_FILE_NAME", filename),
            ("LOGIC_CHECK", logic_check(logic_check_input(filename), nonce)),
        ]
    )


def build_generate_nonce() -> bytes:
    """Body of the nonce bootstrap request (empty)."""
    return b""
