"""Progress display shown while a run is discovering and backing up data.

A surface hands out one (done, closer) pair per message. On every exit
path the caller sets done and then calls closer exactly once, passing
failed=True when the step raised; message_with_completion() does both.
complete() blocks until every message has been closed and then flushes
the display, so counts read after it are final.
"""

import contextlib
import logging
import threading
from typing import Callable, Iterator, Optional

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

logger = logging.getLogger(__name__)

Closer = Callable[..., None]


class NullProgressSurface:
    """Surface that displays nothing but keeps the begin/close bookkeeping."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._open = 0

    def begin_message(self, text: str) -> tuple[threading.Event, Closer]:
        logger.debug("%s", text)
        done = threading.Event()
        with self._cond:
            self._open += 1
        return done, self._make_closer()

    def _make_closer(self) -> Closer:
        closed = False

        def closer(failed: bool = False) -> None:
            nonlocal closed
            with self._cond:
                if closed:
                    return
                closed = True
                self._open -= 1
                self._cond.notify_all()

        return closer

    @property
    def open_messages(self) -> int:
        with self._cond:
            return self._open

    def complete(self, timeout: Optional[float] = None) -> bool:
        """Wait for all open messages to close. False if timeout expired first."""
        with self._cond:
            return self._cond.wait_for(lambda: self._open == 0, timeout=timeout)


class RichProgressSurface(NullProgressSurface):
    """Spinner per message, rendered by rich on its own refresh thread."""

    def __init__(self, console: Optional[Console] = None) -> None:
        super().__init__()
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            TimeElapsedColumn(),
            console=console,
            transient=False,
        )
        self._started = False

    def begin_message(self, text: str) -> tuple[threading.Event, Closer]:
        done, release = super().begin_message(text)
        with self._cond:
            if not self._started:
                self._progress.start()
                self._started = True
        task_id = self._progress.add_task(text, total=None)

        def closer(failed: bool = False) -> None:
            status = "[red]stopped" if failed else "[green]done"
            self._progress.update(
                task_id,
                total=1,
                completed=1,
                description=f"{text} {status}",
            )
            release()

        return done, closer

    def complete(self, timeout: Optional[float] = None) -> bool:
        drained = super().complete(timeout=timeout)
        with self._cond:
            if self._started:
                self._progress.refresh()
                self._progress.stop()
                self._started = False
        return drained


@contextlib.contextmanager
def message_with_completion(surface, text: str) -> Iterator[threading.Event]:
    """Show text on surface for the duration of the block.

    done is set and the message closed on every exit path; an exception
    leaving the block closes the message as failed.
    """
    done, closer = surface.begin_message(text)
    failed = True
    try:
        yield done
        failed = False
    finally:
        done.set()
        closer(failed=failed)
