"""
Tests for the resumable download engine.
"""

import base64
import hashlib
import os
import tempfile
import unittest
from unittest.mock import MagicMock

import requests

from fusproto.errors import CorruptTransferError, DownloadError
from transfer.engine import FirmwareTransfer, TransferAction, content_md5, download
from transfer.progress import ProgressCounter

BODY = b"0123456789"


def _stream_response(chunks, status=200, headers=None):
    resp = MagicMock()
    resp.status_code = status
    resp.headers = headers or {}

    def iter_content(chunk_size=None):
        for c in chunks:
            if isinstance(c, Exception):
                raise c
            yield c

    resp.iter_content.side_effect = iter_content
    return resp


class EngineTestCase(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.path = os.path.join(self.tmp.name, "fw.zip.enc4")
        self.transfer = FirmwareTransfer("/neofus/9/fw.zip.enc4", self.path, len(BODY))
        self.client = MagicMock()

    def write(self, data):
        with open(self.path, "wb") as f:
            f.write(data)

    def read(self):
        with open(self.path, "rb") as f:
            return f.read()


class TestPlan(EngineTestCase):
    def test_states(self):
        self.assertIs(self.transfer.plan(), TransferAction.FRESH)
        self.write(b"0123")
        self.assertIs(self.transfer.plan(), TransferAction.RESUME)
        self.write(BODY)
        self.assertIs(self.transfer.plan(), TransferAction.COMPLETE)

    def test_oversized_file(self):
        self.write(BODY + b"xx")
        with self.assertRaises(CorruptTransferError):
            self.transfer.plan()


class TestDownload(EngineTestCase):
    def test_fresh(self):
        resp = _stream_response([b"01234", b"", b"56789"])
        self.client.stream.return_value = resp
        counter = ProgressCounter()

        result = download(self.client, self.transfer, counter=counter)

        self.client.stream.assert_called_once_with("/neofus/9/fw.zip.enc4", start=0)
        self.assertEqual(self.read(), BODY)
        self.assertIs(result.action, TransferAction.FRESH)
        self.assertEqual(result.written, 10)
        self.assertEqual(counter.value, 10)
        resp.close.assert_called_once()

    def test_resume_from_offset(self):
        self.write(b"01234")
        self.client.stream.return_value = _stream_response([b"567", b"89"], status=206)
        counter = ProgressCounter()

        result = download(self.client, self.transfer, counter=counter)

        self.client.stream.assert_called_once_with("/neofus/9/fw.zip.enc4", start=5)
        self.assertEqual(self.read(), BODY)
        self.assertIs(result.action, TransferAction.RESUME)
        self.assertEqual(result.start_offset, 5)
        self.assertEqual(result.written, 5)
        self.assertEqual(counter.value, 10)

    def test_complete_makes_no_request(self):
        self.write(BODY)
        counter = ProgressCounter()
        result = download(self.client, self.transfer, counter=counter)
        self.client.stream.assert_not_called()
        self.assertIs(result.action, TransferAction.COMPLETE)
        self.assertEqual(counter.value, 10)

    def test_corrupt_file_makes_no_request(self):
        self.write(BODY + b"!")
        with self.assertRaises(CorruptTransferError):
            download(self.client, self.transfer)
        self.client.stream.assert_not_called()

    def test_range_ignored_restarts(self):
        self.write(b"01234")
        self.client.stream.return_value = _stream_response([BODY], status=200)
        counter = ProgressCounter()
        result = download(self.client, self.transfer, counter=counter)
        self.assertEqual(self.read(), BODY)
        self.assertIs(result.action, TransferAction.FRESH)
        self.assertEqual(counter.value, 10)

    def test_interrupted_keeps_partial(self):
        resp = _stream_response([b"012", requests.ConnectionError("reset")])
        self.client.stream.return_value = resp
        with self.assertRaises(DownloadError):
            download(self.client, self.transfer)
        self.assertEqual(self.read(), b"012")
        resp.close.assert_called_once()

        # next attempt resumes from the partial file
        self.client.stream.return_value = _stream_response([b"3456789"], status=206)
        download(self.client, self.transfer)
        self.assertEqual(self.client.stream.call_args[1]["start"], 3)
        self.assertEqual(self.read(), BODY)

    def test_short_stream(self):
        self.client.stream.return_value = _stream_response([b"0123"])
        with self.assertRaises(DownloadError):
            download(self.client, self.transfer)
        self.assertEqual(self.read(), b"0123")

    def test_oversized_body_cut_at_total(self):
        self.write(b"01234")
        self.client.stream.return_value = _stream_response([b"56789EXTRA"], status=206)
        counter = ProgressCounter()
        with self.assertRaises(DownloadError):
            download(self.client, self.transfer, counter=counter)
        self.assertEqual(self.read(), BODY)
        self.assertEqual(counter.value, 10)
        # the next run sees a complete file instead of a corrupt one
        self.assertIs(self.transfer.plan(), TransferAction.COMPLETE)

    def test_oversized_fresh_body_stops_reading(self):
        self.client.stream.return_value = _stream_response(
            [b"0123456", b"789X", b"never read"], status=200
        )
        with self.assertRaises(DownloadError):
            download(self.client, self.transfer)
        self.assertEqual(self.read(), BODY)

    def test_md5_reported(self):
        digest = hashlib.md5(BODY).digest()
        self.client.stream.return_value = _stream_response(
            [BODY], headers={"Content-MD5": base64.b64encode(digest).decode()}
        )
        result = download(self.client, self.transfer)
        self.assertEqual(result.md5, digest.hex())


class TestContentMd5(unittest.TestCase):
    def test_missing(self):
        self.assertIsNone(content_md5(_stream_response([])))

    def test_malformed(self):
        self.assertIsNone(content_md5(_stream_response([], headers={"Content-MD5": "%%%"})))


if __name__ == "__main__":
    unittest.main()
