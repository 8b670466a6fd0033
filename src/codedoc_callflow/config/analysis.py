"""
Analysis Configuration for codedoc-callflow

Controls source scanning, entry-point selection and the call resolution
heuristics. Loaded from a YAML/JSON configuration file or built in code.
"""

import os
import json
import logging
from pathlib import Path
from typing import List, Optional, Dict, Any, Set
from dataclasses import dataclass, field

from ..core.exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "CODEDOC_CALLFLOW_CONFIG"

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class AnalysisConfig:
    """Configuration for a call-flow analysis run"""

    # File extensions to parse
    extensions: List[str] = field(default_factory=lambda: ['.java'])

    # Patterns to ignore (directory or file patterns)
    ignore_patterns: List[str] = field(default_factory=lambda: [
        '.git', 'target', 'build', '.gradle', 'node_modules',
        '.idea', '.vscode', 'out', '*Test.java', '*Tests.java'
    ])

    # Kind tags whose methods become traversal roots
    entry_point_kinds: List[str] = field(default_factory=lambda: ['controller', 'soap'])

    # Infrastructure markers for the framework heuristic, checked in order
    framework_markers: List[str] = field(default_factory=lambda: [
        'Repository', 'Optional', 'List', 'Map', 'Set', 'Stream',
        'Collection', 'EntityManager', 'JdbcTemplate'
    ])

    # Receivers whose calls are dropped without a node
    logger_receivers: List[str] = field(default_factory=lambda: [
        'log', 'logger', 'LOG', 'LOGGER', 'System.out', 'System.err'
    ])

    # Parallel root traversal (1 = sequential)
    max_workers: int = 1

    # Seconds to wait for a single root when running in parallel (None = no limit)
    root_timeout: Optional[float] = None

    # Logging settings
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate and normalize the configuration"""
        # Ensure extensions start with dot
        self.extensions = [
            ext if ext.startswith('.') else f'.{ext}'
            for ext in self.extensions
        ]
        self.entry_point_kinds = [kind.lower() for kind in self.entry_point_kinds]
        self.log_level = self.log_level.upper()

        if self.max_workers < 1:
            raise ConfigError(f"max_workers must be at least 1, got {self.max_workers}")
        if self.root_timeout is not None and self.root_timeout <= 0:
            raise ConfigError(f"root_timeout must be positive, got {self.root_timeout}")
        if self.log_level not in VALID_LOG_LEVELS:
            raise ConfigError(f"Unknown log level: {self.log_level}")

    def get_extension_set(self) -> Set[str]:
        """Get extensions as a set for efficient lookup"""
        return set(self.extensions)

    def should_ignore(self, path: str) -> bool:
        """
        Check if a path should be ignored based on ignore patterns.

        Pattern types:
        - `/pattern` - Root-relative: matches only at the source root
        - `pattern`  - Component match: matches the pattern as any path component
        - `*suffix`  - Glob suffix: matches files ending with the suffix

        Args:
            path: Relative path from the source root (e.g., "src/main/java/App.java")
        """
        path_str = str(path).replace('\\', '/')
        path_components = path_str.split('/')

        for pattern in self.ignore_patterns:
            if pattern.startswith('*'):
                if path_str.endswith(pattern[1:]):
                    logger.debug(f"Ignoring '{path_str}' - matched glob pattern '{pattern}'")
                    return True
            elif pattern.startswith('/'):
                if path_components[0] == pattern[1:]:
                    logger.debug(f"Ignoring '{path_str}' - matched root pattern '{pattern}'")
                    return True
            else:
                if pattern in path_components:
                    logger.debug(f"Ignoring '{path_str}' - matched component pattern '{pattern}'")
                    return True
        return False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'extensions': self.extensions,
            'ignore_patterns': self.ignore_patterns,
            'entry_point_kinds': self.entry_point_kinds,
            'framework_markers': self.framework_markers,
            'logger_receivers': self.logger_receivers,
            'max_workers': self.max_workers,
            'root_timeout': self.root_timeout,
            'log_level': self.log_level
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AnalysisConfig':
        """Create from dictionary"""
        defaults = cls.__dataclass_fields__
        return cls(
            extensions=data.get('extensions', defaults['extensions'].default_factory()),
            ignore_patterns=data.get('ignore_patterns', defaults['ignore_patterns'].default_factory()),
            entry_point_kinds=data.get('entry_point_kinds', defaults['entry_point_kinds'].default_factory()),
            framework_markers=data.get('framework_markers', defaults['framework_markers'].default_factory()),
            logger_receivers=data.get('logger_receivers', defaults['logger_receivers'].default_factory()),
            max_workers=data.get('max_workers', 1),
            root_timeout=data.get('root_timeout'),
            log_level=data.get('log_level', 'INFO')
        )

    @classmethod
    def from_file(cls, config_path: str) -> 'AnalysisConfig':
        """Load configuration from a JSON or YAML file"""
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            content = f.read()

        if config_path.suffix in ('.yaml', '.yml'):
            try:
                import yaml
                data = yaml.safe_load(content) or {}
            except ImportError:
                raise ImportError("PyYAML is required to load YAML config files. Install with: pip install pyyaml")
        else:
            data = json.loads(content)

        return cls.from_dict(data)

    @classmethod
    def from_env(cls) -> 'AnalysisConfig':
        """Load the file named by CODEDOC_CALLFLOW_CONFIG, or the defaults when unset"""
        config_path = os.getenv(CONFIG_ENV_VAR)
        if config_path:
            logger.info(f"Loading config from ${CONFIG_ENV_VAR}: {config_path}")
            return cls.from_file(config_path)
        return cls()

    def save_to_file(self, config_path: str) -> None:
        """Save configuration to a JSON or YAML file"""
        config_path = Path(config_path)

        data = self.to_dict()

        with open(config_path, 'w', encoding='utf-8') as f:
            if config_path.suffix in ('.yaml', '.yml'):
                try:
                    import yaml
                    yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
                except ImportError:
                    raise ImportError("PyYAML is required to save YAML config files. Install with: pip install pyyaml")
            else:
                json.dump(data, f, indent=2)

        logger.info(f"Saved configuration to: {config_path}")

    @classmethod
    def create_default(cls, max_workers: int = 1, log_level: str = "INFO") -> 'AnalysisConfig':
        """Create a default configuration"""
        return cls(max_workers=max_workers, log_level=log_level)


def generate_example_config(output_path: str = "callflow_config.json") -> None:
    """Generate an example configuration file"""
    config = AnalysisConfig(
        ignore_patterns=['.git', 'target', 'build', '*Test.java'],
        entry_point_kinds=['controller', 'soap'],
        max_workers=4,
        root_timeout=30.0,
        log_level="INFO"
    )

    config.save_to_file(output_path)
