"""
Tests for FUSClient – bootstrap, NONCE rotation, cookies, errors, streaming.
"""

import unittest
from unittest.mock import MagicMock

import requests

from fusproto.client import FUSClient, FUSSession
from fusproto.config import FUSConfig
from fusproto.crypto import encrypt_nonce, make_signature
from fusproto.errors import AuthError, ParseError, ProtocolError, TransportError

N1 = "AbCdEfGhIjKlMnOp"
N2 = "zZ9yY8xX7wW6vV5u"


def _response(status=200, text="", headers=None, cookies=None):
    r = MagicMock()
    r.status_code = status
    r.text = text
    r.headers = headers or {}
    r.cookies = cookies or {}
    return r


def _bootstrapped(session=None):
    session = session or MagicMock()
    session.post.return_value = _response(
        headers={"NONCE": encrypt_nonce(N1)}, cookies={"JSESSIONID": "sess-1"}
    )
    client = FUSClient(FUSConfig(base_url="https://fus.test", cloud_url="http://cloud.test"), session)
    return client, session


class TestBootstrap(unittest.TestCase):
    def test_bootstrap_sets_state(self):
        client, session = _bootstrapped()
        self.assertEqual(client.nonce, N1)
        self.assertEqual(client.state.signature, make_signature(N1))
        self.assertEqual(client.state.sessid, "sess-1")
        self.assertTrue(client.state.authenticated)

        args, kwargs = session.post.call_args
        self.assertEqual(args[0], "https://fus.test/NF_DownloadGenerateNonce.do")
        self.assertIn('signature=""', kwargs["headers"]["Authorization"])
        self.assertEqual(kwargs["headers"]["User-Agent"], "Kies2.0_FUS")
        self.assertIsNone(kwargs["cookies"])
        self.assertEqual(kwargs["data"], b"")

    def test_bootstrap_without_nonce_is_unauthenticated(self):
        session = MagicMock()
        session.post.return_value = _response()
        client = FUSClient(session=session)
        self.assertFalse(client.state.authenticated)
        self.assertEqual(client.nonce, "")

    def test_bootstrap_transport_failure(self):
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("down")
        with self.assertRaises(TransportError):
            FUSClient(session=session)


class TestSend(unittest.TestCase):
    def test_signed_request_carries_cookie(self):
        client, session = _bootstrapped()
        session.post.return_value = _response(text="<ok/>")
        self.assertEqual(client.send("NF_DownloadBinaryInform.do", b"<x/>"), "<ok/>")

        _, kwargs = session.post.call_args
        auth = kwargs["headers"]["Authorization"]
        self.assertIn(f'signature="{make_signature(N1)}"', auth)
        self.assertTrue(auth.startswith('FUS nonce=""'))
        self.assertIn('newauth="1"', auth)
        self.assertEqual(kwargs["cookies"], {"JSESSIONID": "sess-1"})
        self.assertEqual(kwargs["timeout"], 60)

    def test_nonce_rotation(self):
        client, session = _bootstrapped()
        session.post.return_value = _response(headers={"NONCE": encrypt_nonce(N2)})
        client.send("NF_DownloadBinaryInform.do", b"")
        self.assertEqual(client.nonce, N2)
        self.assertEqual(client.state.signature, make_signature(N2))
        # cookie kept when the server does not resend it
        self.assertEqual(client.state.sessid, "sess-1")

        session.post.return_value = _response()
        client.send("NF_DownloadBinaryInform.do", b"")
        _, kwargs = session.post.call_args
        self.assertIn(make_signature(N2), kwargs["headers"]["Authorization"])

    def test_no_nonce_keeps_state(self):
        client, session = _bootstrapped()
        session.post.return_value = _response()
        client.send("NF_DownloadBinaryInform.do", b"")
        self.assertEqual(client.nonce, N1)

    def test_http_error(self):
        client, session = _bootstrapped()
        session.post.return_value = _response(status=401, text="denied")
        with self.assertRaises(ProtocolError) as ctx:
            client.send("NF_DownloadBinaryInform.do", b"")
        self.assertEqual(ctx.exception.status, 401)
        self.assertEqual(ctx.exception.body, "denied")

    def test_transport_error(self):
        client, session = _bootstrapped()
        session.post.side_effect = requests.Timeout("slow")
        with self.assertRaises(TransportError):
            client.send("NF_DownloadBinaryInform.do", b"")

    def test_bad_nonce_header(self):
        client, session = _bootstrapped()
        session.post.return_value = _response(headers={"NONCE": "not base64!!"})
        with self.assertRaises(AuthError):
            client.send("NF_DownloadBinaryInform.do", b"")
        self.assertEqual(client.nonce, N1)

    def test_inform_parses_xml(self):
        client, session = _bootstrapped()
        session.post.return_value = _response(text="<FUSMsg><FUSBody/></FUSMsg>")
        root = client.inform(b"")
        self.assertEqual(root.tag, "FUSMsg")
        self.assertTrue(session.post.call_args[0][0].endswith("/NF_DownloadBinaryInform.do"))

    def test_init_endpoint(self):
        client, session = _bootstrapped()
        session.post.return_value = _response(text="<FUSMsg/>")
        client.init(b"")
        self.assertTrue(session.post.call_args[0][0].endswith("/NF_DownloadBinaryInitForMass.do"))

    def test_malformed_xml(self):
        client, session = _bootstrapped()
        session.post.return_value = _response(text="<FUSMsg>")
        with self.assertRaises(ParseError):
            client.inform(b"")


class TestStream(unittest.TestCase):
    def test_fresh_stream(self):
        client, session = _bootstrapped()
        resp = _response(status=200)
        session.get.return_value = resp
        self.assertIs(client.stream("/neofus/9/fw.zip.enc4"), resp)

        args, kwargs = session.get.call_args
        self.assertEqual(args[0], "http://cloud.test/NF_DownloadBinaryForMass.do")
        self.assertEqual(kwargs["params"], "file=/neofus/9/fw.zip.enc4")
        self.assertTrue(kwargs["stream"])
        self.assertNotIn("Range", kwargs["headers"])
        self.assertIn(f'nonce="{encrypt_nonce(N1)}"', kwargs["headers"]["Authorization"])

    def test_resume_sends_range(self):
        client, session = _bootstrapped()
        session.get.return_value = _response(status=206)
        client.stream("fw.zip.enc4", start=1234)
        self.assertEqual(session.get.call_args[1]["headers"]["Range"], "bytes=1234-")

    def test_error_status_closes_response(self):
        client, session = _bootstrapped()
        resp = _response(status=403)
        session.get.return_value = resp
        with self.assertRaises(ProtocolError) as ctx:
            client.stream("fw.zip.enc4")
        self.assertEqual(ctx.exception.status, 403)
        resp.close.assert_called_once()

    def test_transport_error(self):
        client, session = _bootstrapped()
        session.get.side_effect = requests.ConnectionError("reset")
        with self.assertRaises(TransportError):
            client.stream("fw.zip.enc4")


class TestSession(unittest.TestCase):
    def test_rotate_is_atomic(self):
        state = FUSSession()
        state.rotate(encrypt_nonce(N1))
        before = (state.nonce, state.enc_nonce, state.signature)
        with self.assertRaises(AuthError):
            state.rotate("garbage!!")
        self.assertEqual((state.nonce, state.enc_nonce, state.signature), before)

    def test_unauthenticated_by_default(self):
        self.assertFalse(FUSSession().authenticated)


if __name__ == "__main__":
    unittest.main()
