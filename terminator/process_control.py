"""Per-process signaling primitives."""

import logging
import os
import stat
import subprocess

import psutil

logger = logging.getLogger(__name__)


def stdin_path(pid: int) -> str:
    return os.path.join('/proc', str(pid), 'fd', '0')


def write_to_stdin(process: psutil.Process, text: str) -> None:
    """Write a line of text to another process's standard input.

    Only possible where the process table exposes open descriptors
    (Linux procfs). If standard input is a pipe the process will read the
    line; if it is ``/dev/null`` the text is discarded. Standard input
    redirected from a regular file is refused, the file is never touched.

    Args:
        process: Target process
        text: Text to send; a newline is appended

    Raises:
        OSError: If standard input is not a stream or cannot be written
    """
    path = stdin_path(process.pid)
    if not os.path.exists(path):
        raise OSError(f"Standard input of process {process.pid} is not reachable")

    mode = os.stat(path).st_mode
    if not (stat.S_ISFIFO(mode) or stat.S_ISCHR(mode) or stat.S_ISSOCK(mode)):
        raise OSError(
            f"Standard input of process {process.pid} is not a stream"
        )

    data = (text + '\n').encode('utf-8', 'surrogateescape')
    fd = os.open(path, os.O_WRONLY | os.O_APPEND)
    try:
        os.write(fd, data)
    finally:
        os.close(fd)


def request_close(process: psutil.Process) -> bool:
    """Ask a process to close without forcing it.

    On Windows this posts a close message to the process's windows through
    ``taskkill`` without ``/F``. Elsewhere the process is sent SIGTERM.

    Args:
        process: Target process

    Returns:
        True if the request was delivered (or the process is already gone),
        False if it could not be delivered
    """
    if psutil.WINDOWS:
        try:
            result = subprocess.run(
                ['taskkill', '/PID', str(process.pid)],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=False
            )
        except OSError as e:
            logger.warning(
                "Close request to process %d failed: %s", process.pid, e
            )
            return False
        if result.returncode != 0:
            return not process.is_running()
        return True

    try:
        process.terminate()
    except psutil.NoSuchProcess:
        return True
    except psutil.AccessDenied as e:
        logger.warning("Close request to process %d denied: %s", process.pid, e)
        return False
    return True


def wait_for_exit(process: psutil.Process, timeout: float) -> bool:
    """Wait up to ``timeout`` seconds for a process to exit.

    Returns:
        True if the process exited, False if it is still running
    """
    try:
        process.wait(timeout=timeout)
    except psutil.TimeoutExpired:
        return False
    except psutil.NoSuchProcess:
        pass
    return True


def force_kill(process: psutil.Process) -> bool:
    """Forcefully kill a process.

    Returns:
        True if the process was killed, False if it had already exited

    Raises:
        psutil.AccessDenied: If the process cannot be killed
    """
    try:
        process.kill()
    except psutil.NoSuchProcess:
        return False
    # Reap our own children so they do not linger as zombies
    try:
        process.wait(timeout=1)
    except (psutil.TimeoutExpired, psutil.NoSuchProcess):
        pass
    return True
