"""Lookup of live processes by name."""

import logging
import os
from typing import Iterable, List

import psutil

logger = logging.getLogger(__name__)


def _matches(process_name: str, name: str) -> bool:
    if process_name == name:
        return True
    # Windows reports "notepad.exe" for what users call "notepad"
    if psutil.WINDOWS:
        stem, ext = os.path.splitext(process_name)
        return ext.lower() == '.exe' and stem == name
    return False


def find_processes(name: str) -> List[psutil.Process]:
    """Find running processes with the given name.

    The result is a point-in-time snapshot; processes started afterwards are
    not picked up. The calling process is never included.

    Args:
        name: Exact process name

    Returns:
        Matching process handles, possibly empty
    """
    if not name:
        return []

    own_pid = os.getpid()
    found = []
    for proc in psutil.process_iter(['pid', 'name']):
        try:
            process_name = proc.info['name']
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
        if not process_name or proc.pid == own_pid:
            continue
        if _matches(process_name, name):
            found.append(proc)

    logger.debug("Found %d process(es) named %s", len(found), name)
    return found


def is_alive(process: psutil.Process) -> bool:
    """Check whether a process handle still refers to a live process."""
    try:
        return (
            process.is_running()
            and process.status() != psutil.STATUS_ZOMBIE
        )
    except psutil.NoSuchProcess:
        return False
    except psutil.AccessDenied:
        # Still there, we just cannot look at it
        return True


def any_running(processes: Iterable[psutil.Process]) -> bool:
    return any(is_alive(proc) for proc in processes)
