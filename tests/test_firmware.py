"""
Tests for version metadata lookup and version code normalization.
"""

import unittest
from unittest.mock import MagicMock, patch

import requests

from fusproto.errors import (
    FOTAModelOrRegionNotFound,
    FOTANoFirmware,
    FOTAParsingError,
    ParseError,
    ProtocolError,
    TransportError,
)
from fusproto.firmware import (
    FirmwareSpec,
    get_latest_version,
    get_version_info,
    normalize_vercode,
    parse_version_info,
)

VERSION_XML = """<?xml version="1.0" encoding="UTF-8"?>
<versioninfo>
  <url>https://fota-cloud-dn.ospserver.net/firmware/</url>
  <firmware>
    <model>SM-S928B</model>
    <cc>EUX</cc>
    <version>
      <latest o="14">S928BXXU1AXB1/S928BOXM1AXB1/S928BXXU1AXB1</latest>
      <upgrade>
        <value rcount="2" fwsize="1073741824">S928BXXU1AWM9/S928BOXM1AWM9/S928BXXU1AWM9/S928BXXU1AWM9</value>
        <value rcount="1">S928BXXU1AWL1/S928BOXM1AWL1/</value>
        <value></value>
      </upgrade>
    </version>
  </firmware>
</versioninfo>
"""


class TestNormalize(unittest.TestCase):
    def test_three_parts(self):
        self.assertEqual(normalize_vercode("A/B/C"), "A/B/C/A")

    def test_empty_third(self):
        self.assertEqual(normalize_vercode("A/B/"), "A/B/A")

    def test_empty_third_of_four(self):
        self.assertEqual(normalize_vercode("A/B//D"), "A/B/A/D")

    def test_four_parts_unchanged(self):
        self.assertEqual(normalize_vercode("A/B/C/D"), "A/B/C/D")

    def test_idempotent_on_full_form(self):
        v = normalize_vercode("A/B/C")
        self.assertEqual(normalize_vercode(v), v)


class TestParseVersionInfo(unittest.TestCase):
    def test_latest_and_upgrades(self):
        info = parse_version_info(VERSION_XML)
        self.assertEqual(
            info.latest.version, "S928BXXU1AXB1/S928BOXM1AXB1/S928BXXU1AXB1/S928BXXU1AXB1"
        )
        self.assertEqual(
            info.upgrades,
            [
                FirmwareSpec(
                    "S928BXXU1AWM9/S928BOXM1AWM9/S928BXXU1AWM9/S928BXXU1AWM9", 1073741824
                ),
                FirmwareSpec("S928BXXU1AWL1/S928BOXM1AWL1/S928BXXU1AWL1", 0),
            ],
        )

    def test_no_latest(self):
        info = parse_version_info("<versioninfo><firmware><version/></firmware></versioninfo>")
        self.assertIsNone(info.latest)
        self.assertEqual(info.upgrades, [])

    def test_malformed(self):
        with self.assertRaises(FOTAParsingError) as ctx:
            parse_version_info("<versioninfo>")
        self.assertIsInstance(ctx.exception, ParseError)


def _get_response(status=200, text=""):
    r = MagicMock()
    r.status_code = status
    r.text = text
    return r


class TestFetch(unittest.TestCase):
    @patch("fusproto.firmware.requests.get")
    def test_latest_version(self, mock_get):
        mock_get.return_value = _get_response(text=VERSION_XML)
        self.assertEqual(
            get_latest_version("SM-S928B", "EUX"),
            "S928BXXU1AXB1/S928BOXM1AXB1/S928BXXU1AXB1/S928BXXU1AXB1",
        )
        args, kwargs = mock_get.call_args
        self.assertEqual(
            args[0], "https://fota-cloud-dn.ospserver.net/firmware/EUX/SM-S928B/version.xml"
        )
        self.assertEqual(kwargs["timeout"], 3)
        self.assertEqual(kwargs["headers"]["User-Agent"], "Kies2.0_FUS")

    @patch("fusproto.firmware.requests.get")
    def test_forbidden(self, mock_get):
        mock_get.return_value = _get_response(status=403)
        with self.assertRaises(FOTAModelOrRegionNotFound):
            get_version_info("SM-XXXX", "ZZZ")

    @patch("fusproto.firmware.requests.get")
    def test_other_http_error(self, mock_get):
        mock_get.return_value = _get_response(status=500)
        with self.assertRaises(ProtocolError):
            get_version_info("SM-S928B", "EUX")

    @patch("fusproto.firmware.requests.get")
    def test_timeout(self, mock_get):
        mock_get.side_effect = requests.Timeout("slow")
        with self.assertRaises(TransportError):
            get_version_info("SM-S928B", "EUX")

    @patch("fusproto.firmware.requests.get")
    def test_no_firmware(self, mock_get):
        mock_get.return_value = _get_response(
            text="<versioninfo><firmware><version><latest/></version></firmware></versioninfo>"
        )
        with self.assertRaises(FOTANoFirmware):
            get_latest_version("SM-S928B", "EUX")


if __name__ == "__main__":
    unittest.main()
