"""Launch the terminator as a background child process."""

import logging
import os
import subprocess
import sys
import threading
from typing import List, Optional

from terminator.config import RunConfig

logger = logging.getLogger(__name__)

TOOL_NAME = 'process_terminator_main.py'
DEFAULT_TOOL_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))), TOOL_NAME
)


class TerminatorWrapper:
    """Run the command line tool for a configuration, at most once.

    Useful for applications that want a process terminated after they
    themselves exit: pass the application's own name as the monitor.
    """

    def __init__(
        self,
        config: RunConfig,
        *,
        tool_path: Optional[str] = None,
        python: str = sys.executable
    ) -> None:
        """Initialize wrapper.

        Args:
            config: Options to pass to the tool
            tool_path: Path to the tool script. If None, uses the bundled one.
            python: Interpreter used to run the tool

        Raises:
            FileNotFoundError: If the tool script does not exist
        """
        self.tool_path = tool_path or DEFAULT_TOOL_PATH
        if not os.path.isfile(self.tool_path):
            raise FileNotFoundError(f"{TOOL_NAME} is missing: {self.tool_path}")

        self.config = config
        self.python = python
        self._lock = threading.Lock()
        self._started = False
        self._version: Optional[str] = None

    @property
    def arguments(self) -> List[str]:
        return self.config.to_arguments()

    @property
    def command(self) -> List[str]:
        return [self.python, self.tool_path] + self.arguments

    @property
    def version(self) -> str:
        """Version reported by the tool itself."""
        if self._version is None:
            result = subprocess.run(
                [self.python, self.tool_path, '--version'],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                check=True
            )
            self._version = result.stdout.strip()
        return self._version

    @property
    def started(self) -> bool:
        return self._started

    def start_watching(self) -> Optional[subprocess.Popen]:
        """Start the tool in the background.

        Only the first call starts a process; later and concurrent calls
        return None.

        Returns:
            The started process, or None if already started
        """
        with self._lock:
            if self._started:
                return None
            self._started = True

        logger.info("Starting terminator: %s", ' '.join(self.arguments))
        # pylint: disable=consider-using-with
        return subprocess.Popen(
            self.command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            close_fds=True
        )
