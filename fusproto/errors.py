# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Yannick Locque (yanuino)
"""
Exceptions raised by the FUS client.

Everything derives from :class:`FUSError`. Subclasses that carry context
(status code, field name, sizes) compose their own message, so raise sites
pass only the data.
"""


class FUSError(Exception):
    """Root of the package's exception tree."""


class TransportError(FUSError):
    """No HTTP response: connection refused, DNS failure, timeout."""

    def __init__(self, url: str = "", reason: object = None):
        msg = "Transport failure"
        if url:
            msg += f" on {url}"
        if reason is not None:
            msg += f": {reason}"
        super().__init__(msg)
        self.url = url


class ProtocolError(FUSError):
    """A FUS host answered with HTTP status >= 400."""

    def __init__(self, status: int, body: str = "", url: str = ""):
        msg = f"HTTP {status}"
        if url:
            msg += f" from {url}"
        if body:
            msg += f": {body}"
        super().__init__(msg)
        self.status = status
        self.body = body


class ParseError(FUSError):
    """Response body is not well-formed XML."""


class AuthError(FUSError):
    """NONCE could not be decrypted, or is unusable for key derivation."""


class CryptoError(FUSError):
    pass


class InvalidKeyLength(CryptoError):
    def __init__(self, length: int):
        super().__init__(f"AES key must be 16, 24 or 32 bytes, got {length}")
        self.length = length


class InformError(FUSError):
    """BinaryInform answer unusable."""


class InformStatusError(InformError):
    """Embedded Results/Status missing or not 200."""

    def __init__(self, status: int | None = None, request: str = "BinaryInform"):
        if status is None:
            super().__init__(f"{request} answer has no Status")
        else:
            super().__init__(f"{request} status {status} (expected 200)")
        self.status = status


class InformFieldError(InformError):
    def __init__(self, field_name: str):
        super().__init__(f"BinaryInform answer lacks {field_name}")
        self.field_name = field_name


class DecryptionKeyError(InformError):
    """The ENC4 key round trip returned no logic value.

    Only the first four characters of the device id appear in the message.
    """

    def __init__(self, model: str = "", region: str = "", device_id: str = ""):
        ctx = [f"{k}={v}" for k, v in (("model", model), ("region", region)) if v]
        if device_id:
            ctx.append(f"device_id={device_id[:4]}***")
        msg = "No ENC4 key in BinaryInform answer"
        if ctx:
            msg += " (" + ", ".join(ctx) + ")"
        super().__init__(msg + "; the server may not know this model/region/device id")


class DownloadError(FUSError):
    """Transfer aborted or ended short; the partial file is kept."""


class CorruptTransferError(DownloadError):
    def __init__(self, path: str, on_disk: int, total: int):
        super().__init__(
            f"{path} is larger than the announced firmware size ({on_disk} > {total} bytes)"
        )
        self.on_disk = on_disk
        self.total = total


class DecryptError(FUSError):
    pass


class DeviceIdRequired(DecryptError):
    def __init__(self):
        super().__init__("ENC4 keys need a device id (IMEI or serial number)")


class InvalidBlockSize(DecryptError):
    def __init__(self, size: int = 0):
        super().__init__(f"Encrypted size {size} is not a multiple of 16 bytes")
        self.size = size


class DeviceIdError(FUSError):
    """Malformed or missing IMEI, TAC or serial number."""


class InvalidTAC(DeviceIdError):
    def __init__(self, tac: str = ""):
        msg = "Expected an 8-digit TAC or a 15-digit IMEI"
        if tac:
            msg += f", got {tac!r}"
        super().__init__(msg)


class NoValidIMEI(DeviceIdError):
    def __init__(self, attempts: int):
        super().__init__(f"Server rejected all {attempts} generated IMEIs")
        self.attempts = attempts


class FOTAError(FUSError):
    """version.xml lookup failed."""


def _where(model: str, region: str) -> str:
    return f" ({model}/{region})" if model or region else ""


class FOTAModelOrRegionNotFound(FOTAError):
    """HTTP 403 from the version metadata host."""

    def __init__(self, model: str = "", region: str = ""):
        super().__init__("Unknown model or region" + _where(model, region))


class FOTANoFirmware(FOTAError):
    def __init__(self, model: str = "", region: str = ""):
        super().__init__("version.xml lists no latest firmware" + _where(model, region))


class FOTAParsingError(FOTAError, ParseError):
    """version.xml is not well-formed, or lacks ``field``."""

    def __init__(self, field: str = "", model: str = "", region: str = ""):
        msg = "Unreadable version.xml"
        if field:
            msg += f" (at {field!r})"
        super().__init__(msg + _where(model, region))
