import os
import ssl
import threading
import unittest
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest import mock

import httpx

from updater.config import UpdaterConfig
from updater.net.fetcher import Fetcher, FetchError

FIXTURES = Path(__file__).parent / "fixtures"


class _BodyHandler(BaseHTTPRequestHandler):
    body = b"eng\teng\t\t\tEnglish\n"

    def do_GET(self) -> None:
        self.send_response(200)
        self.send_header("Content-Type", "text/plain")
        self.send_header("Content-Length", str(len(self.body)))
        self.end_headers()
        self.wfile.write(self.body)

    def log_message(self, format, *args) -> None:
        pass


def _env_without_proxies() -> dict:
    return {k: v for k, v in os.environ.items() if "proxy" not in k.lower()}


class UntrustedCertificateTests(unittest.TestCase):
    """Fetches against a local HTTPS server whose certificate chains to a private test CA."""

    @classmethod
    def setUpClass(cls) -> None:
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        context.load_cert_chain(FIXTURES / "server.crt", FIXTURES / "server.key")

        cls.server = ThreadingHTTPServer(("127.0.0.1", 0), _BodyHandler)
        cls.server.socket = context.wrap_socket(cls.server.socket, server_side=True)
        cls.thread = threading.Thread(target=cls.server.serve_forever, daemon=True)
        cls.thread.start()
        cls.url = f"https://127.0.0.1:{cls.server.server_address[1]}/iso-639-3.tab"

    @classmethod
    def tearDownClass(cls) -> None:
        cls.server.shutdown()
        cls.server.server_close()
        cls.thread.join(timeout=5)

    def test_untrusted_certificate_is_rejected(self) -> None:
        with TemporaryDirectory() as tmpdir, mock.patch.dict(os.environ, _env_without_proxies(), clear=True):
            dest = Path(tmpdir) / "language.tab"
            with Fetcher(UpdaterConfig()) as fetcher:
                with self.assertRaises(FetchError) as ctx:
                    fetcher.fetch(self.url, dest)

            self.assertIsInstance(ctx.exception.__cause__, httpx.ConnectError)
            self.assertFalse(dest.exists())
            self.assertEqual([], list(Path(tmpdir).iterdir()))

    def test_server_is_reachable_when_certificate_is_trusted(self) -> None:
        # Guards the rejection test above: the failure must come from
        # verification, not from an unreachable server.
        context = ssl.create_default_context(cafile=str(FIXTURES / "test-ca.crt"))
        with mock.patch.dict(os.environ, _env_without_proxies(), clear=True):
            with httpx.Client(verify=context) as client:
                response = client.get(self.url)

        self.assertEqual(200, response.status_code)
        self.assertEqual(_BodyHandler.body, response.content)


if __name__ == "__main__":
    unittest.main()
