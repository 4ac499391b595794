"""Source reachability derived from consecutive poll outcomes."""

from __future__ import annotations

import logging

LOGGER = logging.getLogger("Connectivity")


class ConnectivityReporter:
    """True while the most recent poll succeeded.

    Starts unreachable until the first poll completes.
    """

    def __init__(self) -> None:
        self.reachable = False
        self.consecutive_failures = 0
        self.last_error: str | None = None

    def mark_success(self) -> None:
        if self.consecutive_failures > 0:
            LOGGER.info(f"Source recovered after {self.consecutive_failures} failure(s)")
        elif not self.reachable:
            LOGGER.info("Source reachable")
        self.reachable = True
        self.consecutive_failures = 0
        self.last_error = None

    def mark_failure(self, error: str) -> None:
        self.consecutive_failures += 1
        self.last_error = error
        if self.reachable or self.consecutive_failures == 1:
            LOGGER.warning(f"Source unreachable: {error}")
        elif self.consecutive_failures % 30 == 0:
            LOGGER.warning(f"Source still unreachable ({self.consecutive_failures}x): {error}")
        self.reachable = False
