# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Yannick Locque (yanuino)

"""Samsung Firmware Update Service (FUS) protocol library.

This package implements the FUS protocol core: the NONCE handshake and request
signing, the logic-check primitive, XML message building, the stateful session
client, version metadata lookup and ENC2/ENC4 firmware decryption.

Main Components:
    - FUSClient: Session client (NONCE rotation, signature, JSESSIONID)
    - Version metadata: latest version, upgrade list and normalization
    - Decryption: ENC2/ENC4 key derivation and streaming block decryption
    - Device ids: IMEI/TAC and serial handling
    - Response parsing: BinaryInform data extraction

Example:
    Latest firmware version::

        from fusproto import get_latest_version

        version = get_latest_version("SM-S928B", "EUX")

    Key derivation and decryption::

        from fusproto import FUSClient, get_v4_key, decrypt_file

        client = FUSClient()
        key = get_v4_key(version, model, region, imei, client)
        decrypt_file("firmware.zip.enc4", "firmware.zip", key=key)
"""

from .client import FUSClient, FUSSession
from .decrypt import decrypt_file, enc_version, get_key, get_v2_key, get_v4_key
from .deviceid import resolve_device_id, validate_imei, validate_serial
from .errors import (
    AuthError,
    DecryptError,
    DeviceIdError,
    DownloadError,
    FOTAError,
    FUSError,
    InformError,
    ParseError,
    ProtocolError,
    TransportError,
)
from .firmware import VersionInfo, get_latest_version, get_version_info, normalize_vercode
from .responses import InformInfo, parse_inform
