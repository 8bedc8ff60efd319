"""Informational events emitted while fetching binaries.

Observers are plain callables that take one event. They are purely
observational: nothing they do feeds back into cache decisions.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from rich.console import Console
from rich.markup import escape

from bincache.models import Dependency

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DownloadingBinaries:
    dependency: Dependency
    version_label: str


@dataclass(frozen=True)
class SkippedDownloadingBinaries:
    dependency: Dependency
    reason: str


Event = Union[DownloadingBinaries, SkippedDownloadingBinaries]
EventObserver = Callable[[Event], None]


def send_event(observer: Optional[EventObserver], event: Event) -> None:
    """Log an event and forward it to the observer, if there is one."""
    logger.debug(f"Event: {event}")
    if observer is not None:
        observer(event)


class ConsoleEventObserver:
    """Renders events to the terminal with Rich.

    Examples:
        >>> observer = ConsoleEventObserver()
        >>> observer(DownloadingBinaries(Dependency.github("o/Foo"), "v1.0.0"))
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(stderr=True)

    def __call__(self, event: Event) -> None:
        name = escape(event.dependency.name)
        if isinstance(event, DownloadingBinaries):
            self.console.print(
                f"[bold]***[/bold] Downloading {name} binary at "
                f'"{escape(event.version_label)}"'
            )
        elif isinstance(event, SkippedDownloadingBinaries):
            self.console.print(
                f"[bold yellow]***[/bold yellow] Skipped downloading {name} "
                f'binary due to the error:\n\t"{escape(event.reason)}"'
            )
