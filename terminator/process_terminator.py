"""End-to-end termination run."""

import logging
from typing import Callable, List, Optional

import psutil

from terminator.cleanup import CleanupExecutor, CleanupReport
from terminator.config import RunConfig
from terminator.monitor import MonitorWaiter
from terminator.process_finder import find_processes
from terminator.termination import (
    TargetProcess, TerminationOrchestrator, TerminationReport
)

logger = logging.getLogger(__name__)


class ProcessTerminator:
    """Drive monitor wait, enumeration, termination and cleanup in order."""

    def __init__(
        self,
        config: RunConfig,
        *,
        finder: Callable[[str], List[psutil.Process]] = find_processes,
        waiter: Optional[MonitorWaiter] = None,
        orchestrator: Optional[TerminationOrchestrator] = None,
        cleanup: Optional[CleanupExecutor] = None
    ) -> None:
        """Initialize process terminator.

        Args:
            config: Run configuration
            finder: Function resolving a name to process handles
            waiter: Monitor waiter. If None, one is built from the config.
            orchestrator: Termination orchestrator. If None, one is built
                from the config.
            cleanup: Cleanup executor. If None, uses CleanupExecutor.
        """
        self.config = config
        self.finder = finder
        self.waiter = waiter or MonitorWaiter(config.interval, finder=finder)
        self.orchestrator = orchestrator or TerminationOrchestrator(config)
        self.cleanup = cleanup or CleanupExecutor()
        self.termination_report: Optional[TerminationReport] = None
        self.cleanup_report: Optional[CleanupReport] = None

    def get_targets(self) -> List[TargetProcess]:
        """Snapshot the processes to terminate."""
        processes = self.finder(self.config.process_name)
        if not processes:
            logger.info(
                "No %s instances found to terminate.", self.config.process_name
            )
        return TargetProcess.from_processes(processes, self.config.process_name)

    def run(self) -> int:
        """Run the whole termination sequence.

        An empty snapshot skips the termination stages; cleanup still runs.

        Returns:
            Exit code (0 on completion)

        Raises:
            ValueError: If no process name is configured
        """
        if not self.config.process_name:
            raise ValueError("Process name cannot be empty")

        self.waiter.wait(self.config.monitor)
        targets = self.get_targets()
        self.termination_report = self.orchestrator.run(targets)
        self.cleanup_report = self.cleanup.remove(self.config.remove)

        if self.termination_report.failures:
            logger.warning(
                "%d process(es) could not be terminated",
                len(self.termination_report.failures)
            )
        if self.cleanup_report.failed:
            logger.warning(
                "Could not remove: %s", ', '.join(self.cleanup_report.failed)
            )
        return 0
