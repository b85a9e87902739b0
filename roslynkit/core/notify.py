"""
One-time user notifications.

A missing prerequisite (the dotnet CLI) is reported to the user at most once
per process no matter how many acquisition attempts hit it, including
concurrent ones. Construct a single OnceNotifier per process and pass it to
every component that may report the condition.
"""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class OnceNotifier:
    """
    Deliver a single user-visible message, then stay silent.

    Example:
        >>> notifier = OnceNotifier(sink=print)
        >>> notifier.notify("dotnet not found")
        dotnet not found
        True
        >>> notifier.notify("dotnet not found")
        False
    """

    def __init__(self, sink: Optional[Callable[[str], None]] = None):
        """
        Args:
            sink: Receives the message; defaults to a warning log record
        """
        self._sink = sink or logger.warning
        self._lock = threading.Lock()
        self._fired = False

    @property
    def fired(self) -> bool:
        return self._fired

    def notify(self, message: str) -> bool:
        """
        Send `message` if nothing was sent before.

        Returns:
            True if this call delivered the message
        """
        with self._lock:
            if self._fired:
                return False
            self._fired = True

        self._sink(message)
        return True
