# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Yannick Locque (yanuino)
"""
IMEI, TAC and serial number handling.

FUS only serves firmware metadata for plausible devices. Given just a TAC
(the 8-digit model prefix of an IMEI), candidate IMEIs are generated and
probed with BinaryInform until the server answers status 200.
"""

from __future__ import annotations

import logging
import random
from typing import Callable, Optional

from .client import FUSClient
from .errors import DeviceIdError, FUSError, InvalidTAC, NoValidIMEI
from .firmware import get_latest_version
from .messages import build_binary_inform

logger = logging.getLogger(__name__)

# serial digits following the TAC, as observed on real devices
_FIRST_DIGITS = (0, 5, 7)
_THIRD_DIGITS = (0, 1, 3, 5, 6, 7)

IMEI_PROBE_ATTEMPTS = 5


def luhn_checksum(digits: str) -> int:
    """Luhn check digit for ``digits`` (an IMEI without its last digit)."""
    total = 0
    for pos, ch in enumerate(reversed(digits)):
        d = int(ch)
        if pos % 2 == 0:
            d *= 2
            if d > 9:
                d -= 9
        total += d
    return (10 - total % 10) % 10


def generate_imei(tac: str, rng: Optional[random.Random] = None) -> str:
    """
    Complete an 8-digit TAC to a Luhn-valid 15-digit IMEI.

    A 15-digit input is returned unchanged.

    Raises:
        InvalidTAC: Input is not 8 or 15 decimal digits.
    """
    if not tac.isdecimal() or len(tac) not in (8, 15):
        raise InvalidTAC(tac)
    if len(tac) == 15:
        return tac
    rng = rng or random.Random()
    core = (
        f"{tac}{rng.choice(_FIRST_DIGITS)}{rng.randint(4, 9)}"
        f"{rng.choice(_THIRD_DIGITS)}{rng.randint(0, 9)}{rng.randint(0, 99):02d}"
    )
    return core + str(luhn_checksum(core))


def find_valid_imei(
    tac: str,
    model: str,
    region: str,
    *,
    attempts: int = IMEI_PROBE_ATTEMPTS,
    client_factory: Callable[[], FUSClient] = FUSClient,
    rng: Optional[random.Random] = None,
) -> str:
    """
    Probe generated IMEIs until the server accepts one.

    Every attempt bootstraps its own client. A failed request counts as a
    rejected attempt. A failing version lookup is not retried.

    Raises:
        InvalidTAC: Malformed input.
        NoValidIMEI: All ``attempts`` candidates were rejected.
    """
    if len(tac) == 15 and tac.isdecimal():
        return tac
    if not tac.isdecimal() or len(tac) != 8:
        raise InvalidTAC(tac)
    fwver = get_latest_version(model, region)
    for attempt in range(1, attempts + 1):
        imei = generate_imei(tac, rng)
        try:
            client = client_factory()
            resp = client.send(
                "NF_DownloadBinaryInform.do",
                build_binary_inform(fwver, model, region, imei, client.nonce),
            )
        except FUSError as exc:
            logger.warning("IMEI probe %d/%d failed: %s", attempt, attempts, exc)
            continue
        if "<Status>200</Status>" in resp:
            logger.info("IMEI probe %d/%d: %s accepted", attempt, attempts, imei)
            return imei
        logger.info("IMEI probe %d/%d: %s rejected", attempt, attempts, imei)
    raise NoValidIMEI(attempts)


def resolve_device_id(imei: str = "", serial: str = "", model: str = "", region: str = "") -> str:
    """
    Device id to send to FUS, from the user's IMEI/TAC or serial.

    Raises:
        InvalidTAC: IMEI given but neither 8 nor 15 digits.
        DeviceIdError: Nothing given, or a malformed serial.
        NoValidIMEI: No IMEI generated from the TAC was accepted.
    """
    if imei:
        if len(imei) == 8:
            return find_valid_imei(imei, model, region)
        if len(imei) == 15 and imei.isdecimal():
            return imei
        raise InvalidTAC(imei)
    if serial:
        if not validate_serial(serial):
            raise DeviceIdError("Serial number must be 1-35 letters or digits")
        return serial
    raise DeviceIdError("A device id is required: IMEI/TAC (-i) or serial (-s)")


def validate_serial(serial: str) -> bool:
    """
    Check a device serial number.

    Args:
        serial: Serial as typed by the user.

    Returns:
        True for 1-35 letters or digits.
    """
    return 1 <= len(serial) <= 35 and serial.isalnum()


def validate_imei(imei: str) -> bool:
    """True for 15 decimal digits whose last digit is the Luhn check digit."""
    if len(imei) != 15 or not imei.isdecimal():
        return False
    return luhn_checksum(imei[:14]) == int(imei[14])
