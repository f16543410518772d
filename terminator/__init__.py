"""Process terminator package."""

from .cleanup import CleanupExecutor, CleanupReport, CleanupResult, CleanupStatus
from .config import RunConfig, parse_remove_paths
from .monitor import MonitorWaiter
from .process_finder import find_processes
from .process_terminator import ProcessTerminator
from .termination import (
    TargetProcess, TargetState, TerminationOrchestrator, TerminationReport
)
from .wrapper import TerminatorWrapper

__version__ = '1.0.0'

__all__ = [
    'CleanupExecutor',
    'CleanupReport',
    'CleanupResult',
    'CleanupStatus',
    'MonitorWaiter',
    'ProcessTerminator',
    'RunConfig',
    'TargetProcess',
    'TargetState',
    'TerminationOrchestrator',
    'TerminationReport',
    'TerminatorWrapper',
    'find_processes',
    'parse_remove_paths',
]
