"""Unit tests for the termination orchestrator."""

import threading
import unittest
from unittest.mock import MagicMock, patch

import psutil

from terminator.config import RunConfig
from terminator.termination import (
    TargetProcess, TargetState, TerminationOrchestrator
)


def _targets(*pids, name='myapp'):
    processes = []
    for pid in pids:
        proc = MagicMock()
        proc.pid = pid
        processes.append(proc)
    return TargetProcess.from_processes(processes, name)


class TestTerminationOrchestrator(unittest.TestCase):
    """Test termination sequencing."""

    def setUp(self):
        """Set up test fixtures."""
        self.sleep = MagicMock()
        self.close_request = MagicMock(return_value=True)
        self.stdin_writer = MagicMock()
        self.exit_waiter = MagicMock(return_value=True)
        self.killer = MagicMock(return_value=True)

    def _orchestrator(self, **options):
        options.setdefault('process_name', 'myapp')
        return TerminationOrchestrator(
            RunConfig(**options),
            sleep=self.sleep,
            close_request=self.close_request,
            stdin_writer=self.stdin_writer,
            exit_waiter=self.exit_waiter,
            killer=self.killer
        )

    def test_empty_snapshot_is_noop(self):
        """Test that no stage runs without targets."""
        orchestrator = self._orchestrator(delay=3, wait=2, command='exit')
        report = orchestrator.run([])

        self.assertEqual(report.found, 0)
        self.sleep.assert_not_called()
        self.stdin_writer.assert_not_called()
        self.close_request.assert_not_called()
        self.killer.assert_not_called()

    def test_delay_gate(self):
        targets = _targets(1)
        orchestrator = self._orchestrator(delay=2)
        with self.assertLogs('terminator', level='INFO') as logs:
            self.assertTrue(orchestrator.delay_gate(targets))
        self.sleep.assert_called_once_with(2)
        self.assertIn('Delaying termination for 2 seconds.', logs.output[0])

    def test_no_delay_configured(self):
        self.assertFalse(self._orchestrator().delay_gate(_targets(1)))
        self.sleep.assert_not_called()

    def test_graceful_exit(self):
        """Test processes that exit after the close request are not killed."""
        targets = _targets(1, 2)
        report = self._orchestrator(wait=5).run(targets)

        self.assertEqual(sorted(report.exited), [1, 2])
        self.assertEqual(report.killed, [])
        self.killer.assert_not_called()
        self.exit_waiter.assert_any_call(targets[0].process, 5)
        self.assertTrue(report.all_closed)
        for target in targets:
            self.assertIs(target.outcome, TargetState.EXITED_GRACEFULLY)

    def test_escalates_after_timeout(self):
        """Test processes still alive after the wait are killed."""
        self.exit_waiter.return_value = False
        targets = _targets(42)

        with self.assertLogs('terminator', level='INFO') as logs:
            report = self._orchestrator(wait=3).run(targets)

        self.assertEqual(report.killed, [42])
        self.killer.assert_called_once_with(targets[0].process)
        self.assertTrue(any('Terminating myapp (42)' in line for line in logs.output))
        self.assertIs(targets[0].state, TargetState.CLOSED)
        self.assertIs(targets[0].outcome, TargetState.KILLED)

    def test_zero_wait_checks_once_then_kills(self):
        """Test that a zero wait gives no extra grace."""
        self.exit_waiter.return_value = False
        targets = _targets(9)
        report = self._orchestrator(wait=0).run(targets)

        self.exit_waiter.assert_called_once_with(targets[0].process, 0)
        self.assertEqual(report.killed, [9])

    def test_failed_close_request_escalates(self):
        self.close_request.return_value = False
        targets = _targets(8)
        report = self._orchestrator(wait=10).run(targets)

        self.exit_waiter.assert_not_called()
        self.assertEqual(report.killed, [8])

    @patch('psutil.WINDOWS', True)
    @patch('terminator.process_control.subprocess.run',
           side_effect=FileNotFoundError('taskkill'))
    def test_unavailable_close_command_escalates(self, _run):
        """Test a close request that cannot be issued ends in a kill."""
        targets = _targets(8)
        orchestrator = TerminationOrchestrator(
            RunConfig(process_name='myapp', wait=10),
            sleep=self.sleep,
            exit_waiter=self.exit_waiter,
            killer=self.killer
        )
        with self.assertLogs('terminator', level='WARNING'):
            report = orchestrator.run(targets)

        self.exit_waiter.assert_not_called()
        self.killer.assert_called_once_with(targets[0].process)
        self.assertEqual(report.killed, [8])
        self.assertEqual(report.failures, {})

    def test_process_gone_before_close(self):
        """Test a process exiting before the close attempt counts as success."""
        self.close_request.side_effect = psutil.NoSuchProcess(3)
        targets = _targets(3)
        report = self._orchestrator().run(targets)

        self.assertEqual(report.exited, [3])
        self.assertEqual(report.failures, {})
        self.assertTrue(report.all_closed)

    def test_process_gone_before_kill(self):
        self.exit_waiter.return_value = False
        self.killer.return_value = False
        report = self._orchestrator().run(_targets(3))
        self.assertEqual(report.exited, [3])
        self.assertEqual(report.killed, [])

    def test_kill_failure_does_not_stop_siblings(self):
        """Test one failing kill leaves the other targets unaffected."""
        self.exit_waiter.return_value = False
        targets = _targets(1, 2, 3)

        def kill(process):
            if process.pid == 2:
                raise psutil.AccessDenied(2)
            return True

        self.killer.side_effect = kill
        with self.assertLogs('terminator', level='WARNING'):
            report = self._orchestrator().run(targets)

        self.assertEqual(sorted(report.killed), [1, 3])
        self.assertIn(2, report.failures)
        self.assertTrue(report.all_closed)
        self.assertIsNone(targets[1].outcome)

    def test_unexpected_error_propagates_after_all_targets_closed(self):
        targets = _targets(1, 2)

        def close(process):
            if process.pid == 1:
                raise RuntimeError('boom')
            return True

        self.close_request.side_effect = close
        with self.assertRaises(RuntimeError):
            self._orchestrator().close_all(targets)
        for target in targets:
            self.assertIs(target.state, TargetState.CLOSED)
        self.assertIs(targets[1].outcome, TargetState.EXITED_GRACEFULLY)

    def test_close_runs_in_parallel(self):
        """Test every target is being closed at the same time."""
        targets = _targets(1, 2, 3)
        barrier = threading.Barrier(len(targets), timeout=5)

        def wait(process, timeout):
            barrier.wait()
            return True

        self.exit_waiter.side_effect = wait
        report = self._orchestrator().run(targets)
        self.assertEqual(sorted(report.exited), [1, 2, 3])

    def test_command_sent_then_wait(self):
        """Test custom command dispatch followed by the settle wait."""
        targets = _targets(1, 2)
        with self.assertLogs('terminator', level='INFO') as logs:
            sent = self._orchestrator(command='exit', wait=3).dispatch_command(targets)

        self.assertEqual(sorted(sent), [1, 2])
        self.assertEqual(self.stdin_writer.call_count, 2)
        self.stdin_writer.assert_any_call(targets[0].process, 'exit')
        self.sleep.assert_called_once_with(3)
        self.assertIn("Sending 'exit' to all instances running.", logs.output[0])
        self.assertIn('Waiting for 3 seconds.', logs.output[-1])

    def test_command_without_wait_does_not_sleep(self):
        self._orchestrator(command='exit').dispatch_command(_targets(1))
        self.sleep.assert_not_called()

    def test_no_command_configured(self):
        self.assertEqual(self._orchestrator().dispatch_command(_targets(1)), [])
        self.stdin_writer.assert_not_called()

    def test_command_failure_does_not_stop_others(self):
        """Test that a closed input stream on one target is tolerated."""
        targets = _targets(1, 2, 3)

        def write(process, text):
            if process.pid == 2:
                raise BrokenPipeError('closed')

        self.stdin_writer.side_effect = write
        with self.assertLogs('terminator', level='WARNING'):
            sent = self._orchestrator(command='exit').dispatch_command(targets)

        self.assertEqual(sorted(sent), [1, 3])
        self.assertEqual(self.stdin_writer.call_count, 3)

    def test_unencodable_command_does_not_abort_run(self):
        """Test an encoding error on one target still lets every target close."""
        targets = _targets(1, 2)

        def write(process, text):
            if process.pid == 1:
                raise UnicodeEncodeError('utf-8', text, 0, 1, 'bad')

        self.stdin_writer.side_effect = write
        with self.assertLogs('terminator', level='WARNING'):
            report = self._orchestrator(command='quit\udcff').run(targets)

        self.assertEqual(report.command_sent, [2])
        self.assertEqual(sorted(report.exited), [1, 2])
        self.assertTrue(report.all_closed)

    def test_stage_order(self):
        """Test delay, then command, then close."""
        calls = []
        self.sleep.side_effect = lambda s: calls.append(('sleep', s))
        self.stdin_writer.side_effect = lambda p, t: calls.append(('command', t))
        self.close_request.side_effect = lambda p: calls.append(('close', p.pid)) or True

        self._orchestrator(delay=2, wait=4, command='quit').run(_targets(5))

        self.assertEqual(
            calls,
            [('sleep', 2), ('command', 'quit'), ('sleep', 4), ('close', 5)]
        )


if __name__ == '__main__':
    unittest.main()
