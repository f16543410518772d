"""Run configuration for process termination."""

import os
from dataclasses import dataclass, field, fields
from typing import Iterable, List, Optional, Tuple

import yaml

DEFAULT_LOG_FILE = 'ProcessTerminator.log'
LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


def parse_remove_paths(value: Optional[str]) -> Tuple[str, ...]:
    """Split a comma-separated list of paths.

    Args:
        value: Raw option value, e.g. ``"/tmp/a,/tmp/b"``

    Returns:
        Tuple of non-blank paths in the order given
    """
    if not value:
        return ()
    return tuple(part.strip() for part in value.split(',') if part.strip())


@dataclass(frozen=True)
class RunConfig:
    """Validated options for a single termination run."""
    process_name: str = ''
    monitor: str = ''
    interval: int = 1
    delay: int = 0
    wait: int = 0
    command: str = ''
    remove: Tuple[str, ...] = field(default_factory=tuple)
    log: bool = False
    log_file: str = DEFAULT_LOG_FILE
    log_level: str = 'INFO'

    def __post_init__(self):
        """Validate run configuration."""
        for name in ('process_name', 'monitor', 'command'):
            value = getattr(self, name)
            if value is None:
                object.__setattr__(self, name, '')
            elif not isinstance(value, str):
                raise ValueError(f"{name} must be a string")

        for name in ('interval', 'delay', 'wait'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer number of seconds")
            if value < 0:
                raise ValueError(f"{name} cannot be negative")
        if self.interval < 1:
            raise ValueError("interval must be at least 1 second")

        remove = self.remove
        if remove is None:
            remove = ()
        elif isinstance(remove, str):
            remove = parse_remove_paths(remove)
        elif not isinstance(remove, (list, tuple)):
            raise ValueError("remove must be a list of paths")
        remove = tuple(remove)
        for path in remove:
            if not isinstance(path, str) or not path:
                raise ValueError(f"Paths to remove must be non-empty strings: {path!r}")
        object.__setattr__(self, 'remove', remove)

        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")
        if not self.log_file:
            raise ValueError("Log file cannot be empty")

    def to_arguments(self) -> List[str]:
        """Render the configuration as command line arguments.

        Returns:
            Argument list accepted by the command line front end
        """
        args = []
        if self.command:
            args += ['--command', self.command]
        if self.monitor:
            args += ['--monitor', self.monitor]
        if self.remove:
            args += ['--remove', ','.join(self.remove)]
        args += [
            '--interval', str(self.interval),
            '--wait', str(self.wait),
            '--delay', str(self.delay),
        ]
        if self.log:
            args.append('--log')
            if self.log_file != DEFAULT_LOG_FILE:
                args += ['--log-file', self.log_file]
        if self.log_level != 'INFO':
            args += ['--log-level', self.log_level]
        if self.process_name:
            args.append(self.process_name)
        return args

    def __str__(self) -> str:
        return ' '.join(self.to_arguments())

    @classmethod
    def field_names(cls) -> Iterable[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_yaml(cls, config_path: str) -> 'RunConfig':
        """Load configuration from YAML file.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            RunConfig object

        Raises:
            FileNotFoundError: If config file not found
            ValueError: If config file is invalid
        """
        if not os.path.isfile(config_path):
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        if not isinstance(config_data, dict):
            raise ValueError(f"Config file must contain a mapping: {config_path}")

        unknown = set(config_data) - set(cls.field_names())
        if unknown:
            raise ValueError(
                f"Unknown configuration keys: {', '.join(sorted(unknown))}"
            )
        return cls(**config_data)

    @classmethod
    def from_args_and_config(
        cls,
        args: 'argparse.Namespace',
        config: Optional['RunConfig'] = None
    ) -> 'RunConfig':
        """Create options from command line args and an optional config file.

        Arguments left unset on the command line fall back to the config
        file, then to the defaults.

        Args:
            args: Command line arguments
            config: Config loaded from YAML, if any

        Returns:
            Combined options
        """
        base = config or cls()

        def pick(name):
            value = getattr(args, name, None)
            return getattr(base, name) if value is None else value

        remove = getattr(args, 'remove', None)
        return cls(
            process_name=pick('process_name'),
            monitor=pick('monitor'),
            interval=pick('interval'),
            delay=pick('delay'),
            wait=pick('wait'),
            command=pick('command'),
            remove=base.remove if remove is None else parse_remove_paths(remove),
            log=bool(getattr(args, 'log', False)) or base.log,
            log_file=pick('log_file'),
            log_level=pick('log_level'),
        )
