# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Yannick Locque (yanuino)
"""
FUS configuration helpers.

This module defines the FUSConfig dataclass which centralizes default
endpoints, HTTP settings and timeouts used by the FUS client, along with the
two fixed protocol keys used by the NONCE handshake.
"""

from __future__ import annotations

from dataclasses import dataclass

# Fixed protocol keys. KEY_1 decrypts server NONCEs and supplies the first half
# of each per-nonce signing key; KEY_2 is the constant second half.
KEY_1: str = "vicopx7dqu06emacgpnpy8j8zwhduwlh"
KEY_2: str = "9u7qab84rpc16gvk"


@dataclass(frozen=True)
class FUSConfig:
    """
    Configuration for the Firmware Update Service (FUS) client.

    Args:
        base_url: Base URL for FUS XML control endpoints.
        cloud_url: Cloud URL used for firmware downloads (plain HTTP host).
        fota_url: Base URL of the version metadata (version.xml) service.
        user_agent: User-Agent header used for FUS requests.
        request_timeout: Timeout in seconds for XML API requests.
        version_timeout: Timeout in seconds for the version metadata fetch.
        download_timeout: Timeout for the binary stream; None means no timeout.
    """

    base_url: str = "https://neofussvr.sslcs.cdngc.net"
    cloud_url: str = "http://cloud-neofussvr.samsungmobile.com"
    fota_url: str = "https://fota-cloud-dn.ospserver.net/firmware"
    user_agent: str = "Kies2.0_FUS"
    request_timeout: int = 60  # seconds
    version_timeout: int = 3  # seconds
    download_timeout: float | None = None


DEFAULT_CONFIG = FUSConfig()
