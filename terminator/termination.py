"""Termination sequencing across a snapshot of target processes."""

import enum
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

import psutil

from terminator import process_control
from terminator.config import RunConfig

logger = logging.getLogger(__name__)


class TargetState(enum.Enum):
    """Lifecycle of a target process within one run."""
    RUNNING = 'running'
    EXITED_GRACEFULLY = 'exited_gracefully'
    KILLED = 'killed'
    CLOSED = 'closed'


@dataclass
class TargetProcess:
    """A process captured at enumeration time."""
    process: psutil.Process
    name: str
    state: TargetState = TargetState.RUNNING
    outcome: Optional[TargetState] = None
    error: Optional[str] = None

    @property
    def pid(self) -> int:
        return self.process.pid

    @classmethod
    def from_processes(
        cls, processes: Sequence[psutil.Process], name: str
    ) -> List['TargetProcess']:
        return [cls(process=proc, name=name) for proc in processes]

    def close(self) -> None:
        """Release the handle; terminal for this run."""
        self.state = TargetState.CLOSED


@dataclass
class TerminationReport:
    """Summary of a termination run."""
    found: int = 0
    exited: List[int] = field(default_factory=list)
    killed: List[int] = field(default_factory=list)
    failures: Dict[int, str] = field(default_factory=dict)
    command_sent: List[int] = field(default_factory=list)
    targets: List[TargetProcess] = field(default_factory=list)

    @property
    def all_closed(self) -> bool:
        return all(t.state is TargetState.CLOSED for t in self.targets)


def _fan_out(targets: Sequence[TargetProcess],
             work: Callable[[TargetProcess], object]) -> List[object]:
    """Run ``work`` once per target in parallel and join on all of them.

    Every worker is allowed to finish before the first unexpected error,
    if any, is re-raised.
    """
    if not targets:
        return []
    with ThreadPoolExecutor(
        max_workers=len(targets), thread_name_prefix='terminator'
    ) as executor:
        futures = [executor.submit(work, target) for target in targets]
    results = []
    errors = []
    for future in futures:
        exc = future.exception()
        if exc is not None:
            errors.append(exc)
        else:
            results.append(future.result())
    if errors:
        raise errors[0]
    return results


class TerminationOrchestrator:
    """Delay, notify, close and, if necessary, kill target processes."""

    def __init__(
        self,
        config: RunConfig,
        *,
        sleep: Callable[[float], None] = time.sleep,
        close_request: Callable[[psutil.Process], bool] = process_control.request_close,
        stdin_writer: Callable[[psutil.Process, str], None] = process_control.write_to_stdin,
        exit_waiter: Callable[[psutil.Process, float], bool] = process_control.wait_for_exit,
        killer: Callable[[psutil.Process], bool] = process_control.force_kill
    ) -> None:
        """Initialize termination orchestrator.

        Args:
            config: Run configuration
            sleep: Blocking sleep used for the delay and settle periods
            close_request: Sends a cooperative close request
            stdin_writer: Writes the custom command to a process
            exit_waiter: Waits for a process to exit with a timeout
            killer: Forcefully kills a process
        """
        self.config = config
        self.sleep = sleep
        self.close_request = close_request
        self.stdin_writer = stdin_writer
        self.exit_waiter = exit_waiter
        self.killer = killer

    def delay_gate(self, targets: Sequence[TargetProcess]) -> bool:
        """Sleep for the configured delay before touching any target.

        Returns:
            True if a delay was applied
        """
        if self.config.delay <= 0 or not targets:
            return False
        logger.info("Delaying termination for %d seconds.", self.config.delay)
        self.sleep(self.config.delay)
        return True

    def _send_command(self, target: TargetProcess) -> bool:
        try:
            self.stdin_writer(target.process, self.config.command)
        except (OSError, ValueError, psutil.Error) as e:
            logger.warning(
                "Could not send command to %s (%d): %s",
                target.name, target.pid, e
            )
            return False
        logger.debug("Sent command to %s (%d)", target.name, target.pid)
        return True

    def dispatch_command(self, targets: Sequence[TargetProcess]) -> List[int]:
        """Write the custom command to every target's standard input.

        Returns:
            Pids the command was written to
        """
        if not self.config.command or not targets:
            return []

        logger.info(
            "Sending '%s' to all instances running.", self.config.command
        )
        results = _fan_out(targets, self._send_command)
        sent = [t.pid for t, ok in zip(targets, results) if ok]

        if self.config.wait > 0:
            logger.info("Waiting for %d seconds.", self.config.wait)
            self.sleep(self.config.wait)
        return sent

    def _close_one(self, target: TargetProcess) -> Optional[TargetState]:
        try:
            closed = (
                self.close_request(target.process)
                and self.exit_waiter(target.process, self.config.wait)
            )
            if closed:
                target.outcome = TargetState.EXITED_GRACEFULLY
            else:
                logger.info("Terminating %s (%d)", target.name, target.pid)
                if self.killer(target.process):
                    target.outcome = TargetState.KILLED
                else:
                    target.outcome = TargetState.EXITED_GRACEFULLY
        except psutil.NoSuchProcess:
            target.outcome = TargetState.EXITED_GRACEFULLY
        except (psutil.Error, OSError) as e:
            logger.warning(
                "Failed to terminate %s (%d): %s", target.name, target.pid, e
            )
            target.error = str(e)
        finally:
            target.close()
        return target.outcome

    def close_all(self, targets: Sequence[TargetProcess]) -> None:
        """Request every target to close, killing those that do not."""
        if not targets:
            return
        logger.info(
            "Requesting all %s instances to close.", self.config.process_name
        )
        _fan_out(targets, self._close_one)

    def run(self, targets: Sequence[TargetProcess]) -> TerminationReport:
        """Run the delay, command and close stages in order.

        Args:
            targets: Snapshot of processes to terminate

        Returns:
            Report of what happened to each target
        """
        report = TerminationReport(found=len(targets), targets=list(targets))
        if not targets:
            return report

        self.delay_gate(targets)
        report.command_sent = self.dispatch_command(targets)
        self.close_all(targets)

        for target in targets:
            if target.outcome is TargetState.KILLED:
                report.killed.append(target.pid)
            elif target.outcome is TargetState.EXITED_GRACEFULLY:
                report.exited.append(target.pid)
            if target.error:
                report.failures[target.pid] = target.error

        logger.info(
            "Found %d %s instance(s); forcibly killed: %s", report.found,
            self.config.process_name,
            ', '.join(str(pid) for pid in report.killed) or 'none'
        )
        return report
