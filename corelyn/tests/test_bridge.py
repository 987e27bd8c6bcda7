"""Tests for client bridges."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

from corelyn.cli import ConsoleBridge
from corelyn.messaging.bridge import EventQueueBridge


class TestEventQueueBridge:
    def test_drain_returns_in_order_and_empties(self) -> None:
        bridge = EventQueueBridge()
        bridge.download("a.txt", "x")
        bridge.toast("careful", "error")
        assert bridge.drain() == [
            {"type": "download", "filename": "a.txt", "content": "x"},
            {"type": "toast", "content": "careful", "kind": "error"},
        ]
        assert bridge.drain() == []


class TestConsoleBridge:
    def test_download_uses_base_name_only(self, tmp_path: Path) -> None:
        bridge = ConsoleBridge(tmp_path / "downloads")
        bridge.download("../../etc/notes.txt", "hello")
        assert (tmp_path / "downloads" / "notes.txt").read_text() == "hello"
        assert not (tmp_path / "etc").exists()

    def test_open_url_uses_browser(self, tmp_path: Path) -> None:
        with patch("corelyn.cli.webbrowser.open_new_tab") as opener:
            ConsoleBridge(tmp_path).open_url("https://example.com")
        opener.assert_called_once_with("https://example.com")
