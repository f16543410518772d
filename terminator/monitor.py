"""Wait for a prerequisite process to exit."""

import logging
import time
from typing import Callable, List

import psutil

from terminator.process_finder import any_running, find_processes

logger = logging.getLogger(__name__)


class MonitorWaiter:
    """Block until no process with a given name is alive.

    This polls the process table on a fixed interval and has no deadline.
    """

    def __init__(
        self,
        interval: float = 1,
        *,
        finder: Callable[[str], List[psutil.Process]] = find_processes,
        sleep: Callable[[float], None] = time.sleep
    ) -> None:
        """Initialize monitor waiter.

        Args:
            interval: Seconds between polls
            finder: Function resolving a name to process handles
            sleep: Function used to pause between polls
        """
        self.interval = interval
        self.finder = finder
        self.sleep = sleep

    def wait(self, name: str) -> int:
        """Wait until every process called ``name`` has exited.

        Args:
            name: Monitor process name; blank means do not wait

        Returns:
            Number of polling intervals slept
        """
        if not name or not name.strip():
            return 0

        processes = self.finder(name)
        if not processes:
            logger.debug("No %s instances running, not waiting", name)
            return 0

        logger.info("Waiting %s to exit.", name)
        polls = 0
        while any_running(processes):
            self.sleep(self.interval)
            polls += 1
            processes = self.finder(name)

        logger.debug("%s exited after %d poll(s)", name, polls)
        return polls
