# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Yannick Locque (yanuino)


from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Optional

import requests

from .config import DEFAULT_CONFIG, FUSConfig
from .crypto import decrypt_nonce, make_signature
from .errors import ParseError, ProtocolError, TransportError
from .messages import build_generate_nonce

logger = logging.getLogger(__name__)

AUTH_TEMPLATE = 'FUS nonce="{nonce}", signature="{signature}", nc="", type="", realm="", newauth="1"'


@dataclass
class FUSSession:
    """
    Authentication state carried between FUS requests.

    Attributes:
        nonce: Plaintext nonce last issued by the server.
        enc_nonce: Base64 wire form of that nonce (sent verbatim to the cloud host).
        signature: Base64 signature of `nonce`; empty until the first NONCE arrives.
        sessid: JSESSIONID cookie value.
    """

    nonce: str = ""
    enc_nonce: str = ""
    signature: str = ""
    sessid: str = ""

    @property
    def authenticated(self) -> bool:
        return bool(self.signature)

    def rotate(self, enc_nonce: str) -> None:
        """
        Replace nonce, encrypted nonce and signature from a NONCE header.

        All three values are computed before any is assigned, so a failed
        decryption leaves the previous state intact.

        Raises:
            AuthError: If the NONCE header cannot be decrypted.
        """
        nonce = decrypt_nonce(enc_nonce)
        signature = make_signature(nonce)
        self.enc_nonce, self.nonce, self.signature = enc_nonce, nonce, signature


class FUSClient:
    """
    Stateful FUS session: signs every request and follows NONCE rotation.

    Constructing a client sends the nonce bootstrap request. The session is
    authenticated once a reply has carried a NONCE header; check
    ``state.authenticated``. Use one client per request sequence;
    instances are not thread-safe.

    Args:
        cfg: Endpoints, user agent and timeouts.
        session: requests.Session to reuse (a new one is created otherwise).
    """

    def __init__(self, cfg: FUSConfig = DEFAULT_CONFIG, session: Optional[requests.Session] = None):
        self.cfg = cfg
        self.sess = session or requests.Session()
        self.state = FUSSession()
        self.send("NF_DownloadGenerateNonce.do", build_generate_nonce())
        logger.debug("FUS session bootstrapped (authenticated=%s)", self.state.authenticated)

    @property
    def nonce(self) -> str:
        return self.state.nonce

    def _headers(self, with_server_nonce: bool = False) -> dict:
        # XML endpoints get an empty nonce field; the cloud host wants the wire nonce
        nonce = self.state.enc_nonce if with_server_nonce else ""
        auth = AUTH_TEMPLATE.format(nonce=nonce, signature=self.state.signature)
        return {"Authorization": auth, "User-Agent": self.cfg.user_agent}

    def send(self, path: str, data: bytes | str = b"") -> str:
        """
        POST ``data`` to an XML endpoint and return the response body.

        A ``NONCE`` response header rotates the session and a ``JSESSIONID``
        cookie replaces the stored one. Both happen before the status check,
        so an error response still updates the session.

        Raises:
            TransportError: No HTTP response (connection, DNS, timeout).
            ProtocolError: HTTP status >= 400.
            AuthError: The rotated NONCE could not be decrypted.
        """
        url = f"{self.cfg.base_url}/{path}"
        cookies = {"JSESSIONID": self.state.sessid} if self.state.sessid else None
        try:
            r = self.sess.post(
                url,
                data=data,
                headers=self._headers(),
                timeout=self.cfg.request_timeout,
                cookies=cookies,
            )
        except requests.RequestException as exc:
            raise TransportError(url, exc) from exc
        if "NONCE" in r.headers:
            self.state.rotate(r.headers["NONCE"])
            logger.debug("NONCE rotated by %s", path)
        if "JSESSIONID" in r.cookies:
            self.state.sessid = r.cookies["JSESSIONID"]
        if r.status_code >= 400:
            raise ProtocolError(r.status_code, r.text, url)
        return r.text

    def _send_xml(self, path: str, payload: bytes) -> ET.Element:
        text = self.send(path, payload)
        try:
            return ET.fromstring(text)
        except ET.ParseError as exc:
            raise ParseError(f"Malformed XML from {path}: {exc}") from exc

    def inform(self, payload: bytes) -> ET.Element:
        """BinaryInform: firmware metadata for a device. Raises ParseError on bad XML."""
        return self._send_xml("NF_DownloadBinaryInform.do", payload)

    def init(self, payload: bytes) -> ET.Element:
        """BinaryInitForMass: authorizes the following download."""
        return self._send_xml("NF_DownloadBinaryInitForMass.do", payload)

    def stream(self, filename: str, start: int = 0) -> requests.Response:
        """
        Open the firmware body on the cloud host.

        Args:
            filename: Model path + binary name from BinaryInform.
            start: Resume offset; a ``Range: bytes=<start>-`` header is sent when > 0.

        Returns:
            The streaming response. The caller must close it.

        Raises:
            TransportError: No HTTP response.
            ProtocolError: HTTP status >= 400 (the response is closed first).
        """
        url = f"{self.cfg.cloud_url}/NF_DownloadBinaryForMass.do"
        headers = self._headers(with_server_nonce=True)
        if start > 0:
            headers["Range"] = f"bytes={start}-"
        try:
            r = self.sess.get(
                url,
                params="file=" + filename,
                headers=headers,
                stream=True,
                timeout=self.cfg.download_timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(url, exc) from exc
        if r.status_code >= 400:
            r.close()
            raise ProtocolError(r.status_code, url=url)
        return r
