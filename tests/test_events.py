"""Tests for event observers."""

from rich.console import Console

from bincache.events import (
    ConsoleEventObserver,
    DownloadingBinaries,
    SkippedDownloadingBinaries,
    send_event,
)
from bincache.models import Dependency

FOO = Dependency.github("example/Foo")


class TestEvents:
    """Test event delivery and rendering."""

    def test_send_without_observer(self):
        """Test that events without an observer are dropped."""
        send_event(None, DownloadingBinaries(FOO, "v1.0.0"))

    def test_send_to_observer(self):
        received = []
        event = SkippedDownloadingBinaries(FOO, "rate limited")
        send_event(received.append, event)
        assert received == [event]

    def test_console_rendering(self):
        """Test the console messages."""
        console = Console(record=True, width=200)
        observer = ConsoleEventObserver(console)

        observer(DownloadingBinaries(FOO, "v1.0.0"))
        observer(SkippedDownloadingBinaries(FOO, "API rate limit [exceeded]"))

        text = console.export_text()
        assert '*** Downloading Foo binary at "v1.0.0"' in text
        assert "*** Skipped downloading Foo binary due to the error:" in text
        assert "API rate limit [exceeded]" in text
