import os
import random
import socket
import tempfile
import threading
import time
import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import requests

from shared.errors import UploadErrorKind
from shared.types import LocalFile
from tracker.config import TrackerSettings
from tracker.context import AppContext
from tracker.mock_data import MockDataGenerator
from tracker.upload_client import (
    DEMO_MODE_NOTE,
    UploadClient,
    UploadError,
    UploadServiceStatus,
    is_loopback_host,
    local_file_from_path,
)

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def _response(status_code=200, body=None, json_error=False):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    if json_error:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = body
    return response


class UploadClientTestCase(unittest.TestCase):
    def setUp(self):
        self.sleeps = []
        context = AppContext(rng=random.Random(3), clock=lambda: NOW)
        self.generator = MockDataGenerator(context, sleep=self.sleeps.append)
        self.session = MagicMock()
        self.session.get.return_value = _response(200, {"status": "OK"})
        self.file = LocalFile(name="a.png", type="image/png", content=b"0123456789")

    def make_client(self, **settings) -> UploadClient:
        values = {"api_base_url": "http://localhost:4001", "page_host": None}
        values.update(settings)
        return UploadClient(
            settings=TrackerSettings(**values),
            generator=self.generator,
            session=self.session,
        )


class UploadFileTests(UploadClientTestCase):
    def test_successful_upload_builds_media_file(self):
        self.session.post.return_value = _response(
            200,
            {
                "success": True,
                "mediaLink": "https://x/y",
                "fileName": "a.png",
                "fileSize": 10,
                "mimeType": "image/png",
            },
        )
        client = self.make_client()

        media = client.upload_file(self.file)

        self.assertEqual(media.url, "https://x/y")
        self.assertEqual(media.name, "a.png")
        self.assertEqual(media.size, 10)
        self.assertEqual(media.type, "image/png")
        self.assertEqual(media.uploaded_at, NOW)
        args, kwargs = self.session.post.call_args
        self.assertEqual(args[0], "http://localhost:4001/upload-media")
        self.assertEqual(kwargs["files"]["file"], ("a.png", b"0123456789", "image/png"))
        self.assertEqual(kwargs["timeout"], 30.0)

    def test_error_body_message_is_used(self):
        self.session.post.return_value = _response(
            400, {"success": False, "error": "No file uploaded"}
        )
        with self.assertRaises(UploadError) as ctx:
            self.make_client().upload_file(self.file)
        self.assertEqual(ctx.exception.kind, UploadErrorKind.UNKNOWN)
        self.assertEqual(ctx.exception.message, "No file uploaded")

    def test_status_code_message_when_body_is_not_json(self):
        self.session.post.return_value = _response(502, json_error=True)
        with self.assertRaises(UploadError) as ctx:
            self.make_client().upload_file(self.file)
        self.assertEqual(ctx.exception.message, "Upload failed with status 502")

    def test_quota_errors_are_categorized(self):
        self.session.post.return_value = _response(
            429, {"success": False, "error": "Upload quota exceeded. Please try again later."}
        )
        with self.assertRaises(UploadError) as ctx:
            self.make_client().upload_file(self.file)
        self.assertEqual(ctx.exception.kind, UploadErrorKind.PROVIDER_QUOTA_EXCEEDED)

    def test_configuration_errors_are_service_unavailable(self):
        self.session.post.return_value = _response(
            500,
            {"success": False, "error": "Upload provider configuration error. Please check server setup."},
        )
        with self.assertRaises(UploadError) as ctx:
            self.make_client().upload_file(self.file)
        self.assertEqual(ctx.exception.kind, UploadErrorKind.SERVICE_UNAVAILABLE)

    def test_success_status_without_media_link_fails(self):
        self.session.post.return_value = _response(200, {"success": True})
        with self.assertRaises(UploadError):
            self.make_client().upload_file(self.file)
        self.session.post.return_value = _response(
            200, {"success": False, "mediaLink": "https://x/y"}
        )
        with self.assertRaises(UploadError):
            self.make_client().upload_file(self.file)

    def test_timeout_and_connection_errors(self):
        client = self.make_client()
        self.session.post.side_effect = requests.Timeout("slow")
        with self.assertRaises(UploadError) as ctx:
            client.upload_file(self.file)
        self.assertEqual(ctx.exception.kind, UploadErrorKind.TIMEOUT)

        self.session.post.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(UploadError) as ctx:
            client.upload_file(self.file)
        self.assertEqual(ctx.exception.kind, UploadErrorKind.NETWORK_UNREACHABLE)


class CheckHealthTests(UploadClientTestCase):
    def test_true_on_success(self):
        self.assertTrue(self.make_client().check_health())
        _, kwargs = self.session.get.call_args
        self.assertEqual(kwargs["timeout"], 5.0)

    def test_false_on_error_status_or_exception(self):
        client = self.make_client()
        self.session.get.return_value = _response(503)
        self.assertFalse(client.check_health())
        self.session.get.side_effect = requests.ConnectionError("down")
        self.assertFalse(client.check_health())
        self.assertEqual(self.session.get.call_count, 2)

    def test_hanging_server_times_out(self):
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        listener.bind(("127.0.0.1", 0))
        listener.listen(1)
        port = listener.getsockname()[1]
        release = threading.Event()
        accepted = []

        def accept_and_hang():
            conn, _ = listener.accept()
            accepted.append(conn)
            release.wait(10)

        thread = threading.Thread(target=accept_and_hang, daemon=True)
        thread.start()
        client = UploadClient(
            settings=TrackerSettings(
                api_base_url=f"http://127.0.0.1:{port}", health_timeout_seconds=0.5
            ),
            generator=self.generator,
        )
        try:
            started = time.monotonic()
            self.assertFalse(client.check_health())
            self.assertLess(time.monotonic() - started, 3.0)
        finally:
            release.set()
            thread.join(2)
            for conn in accepted:
                conn.close()
            listener.close()


class FallbackTests(UploadClientTestCase):
    def test_real_upload_when_healthy(self):
        self.session.post.return_value = _response(
            200,
            {
                "success": True,
                "mediaLink": "https://x/y",
                "fileName": "a.png",
                "fileSize": 10,
                "mimeType": "image/png",
            },
        )
        media = self.make_client().upload_file_with_fallback(self.file)
        self.assertEqual(
            (media.name, media.size, media.type, media.url),
            ("a.png", 10, "image/png", "https://x/y"),
        )
        self.assertEqual(self.sleeps, [])

    def test_unhealthy_backend_uses_mock_without_upload(self):
        client = self.make_client()
        with patch.object(client, "check_health", return_value=False):
            media = client.upload_file_with_fallback(self.file)
        self.session.post.assert_not_called()
        self.assertIn("mock", media.url)
        self.assertEqual((media.name, media.size, media.type), ("a.png", 10, "image/png"))

    def test_hosted_client_skips_probe_of_loopback_backend(self):
        client = self.make_client(page_host="issues.example.com")
        media = client.upload_file_with_fallback(self.file)
        self.session.get.assert_not_called()
        self.session.post.assert_not_called()
        self.assertIn("mock", media.url)

    def test_hosted_client_probes_remote_backend(self):
        client = self.make_client(
            page_host="issues.example.com", api_base_url="https://api.example.com"
        )
        self.assertTrue(client.is_backend_reachable())

    def test_never_raises_for_rejected_or_empty_files(self):
        client = self.make_client()
        self.session.post.return_value = _response(
            400, {"success": False, "error": "Invalid file type."}
        )
        for file in (
            LocalFile(name="empty.txt", type="text/plain"),
            LocalFile(name="tool.exe", type="application/x-msdownload", content=b"MZ"),
        ):
            media = client.upload_file_with_fallback(file)
            self.assertIn("mock", media.url)
            self.assertEqual(media.size, file.size)
            self.assertEqual(media.name, file.name)

    def test_unexpected_exception_falls_back(self):
        client = self.make_client()
        self.session.post.side_effect = RuntimeError("boom")
        media = client.upload_file_with_fallback(self.file)
        self.assertIn("mock", media.url)


class StatusTests(UploadClientTestCase):
    def test_probe_status(self):
        client = self.make_client()
        self.assertEqual(client.status, UploadServiceStatus.CHECKING)
        self.assertEqual(client.probe_status(), UploadServiceStatus.ACTIVE)
        self.assertIsNone(client.status_note(client.status))

        self.session.get.side_effect = requests.Timeout("slow")
        self.assertEqual(client.probe_status(), UploadServiceStatus.DEMO)
        self.assertEqual(client.status_note(client.status), DEMO_MODE_NOTE)

    def test_local_file_from_path(self):
        with tempfile.TemporaryDirectory() as tmp_dir:
            path = os.path.join(tmp_dir, "notes.pdf")
            with open(path, "wb") as f:
                f.write(b"%PDF-1.4")
            file = local_file_from_path(path)
            override = local_file_from_path(path, mime_type="text/plain")
        self.assertEqual((file.name, file.type, file.size), ("notes.pdf", "application/pdf", 8))
        self.assertEqual(override.type, "text/plain")

    def test_loopback_detection(self):
        for host in ("localhost", "127.0.0.1", "::1", "[::1]", "0.0.0.0", "app.localhost"):
            self.assertTrue(is_loopback_host(host), host)
        for host in ("example.com", "10.0.0.5", None, ""):
            self.assertFalse(is_loopback_host(host), host)


if __name__ == "__main__":
    unittest.main()
