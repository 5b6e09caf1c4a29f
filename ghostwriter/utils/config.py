# ghostwriter/utils/config.py

"""
Configuration management for ghostwriter
"""
import os
import re
import json
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, Union, List
from dataclasses import dataclass, field, asdict
import logging

logger = logging.getLogger(__name__)

WATCH_MODES = ("poll", "event")


@dataclass
class WatchConfig:
    """File watching configuration"""
    root: Path = Path(".")

    # "poll" dispatches on every tick and after each event,
    # "event" only after events
    mode: str = "poll"
    poll_interval: float = 0.25  # seconds
    max_events: int = 10000  # bound of the event queue

    # Observer
    use_polling: bool = False
    observer_timeout: float = 1.0  # seconds, polling observer only

    # Record paths even when no handler matches them
    track_unmatched: bool = False

    # Pattern triggered once the tree is watched, e.g. ".*" for a full build
    initial_pattern: Optional[str] = None

    ignore_patterns: List[str] = field(default_factory=lambda: [
        r"^\..+",  # Hidden files and directories at the top level
        re.escape(os.sep) + r"\.",  # Hidden files and directories below it
        r"~$",  # Editor backups
        r"#$",  # Emacs autosaves
    ])

    def __post_init__(self):
        if isinstance(self.root, str):
            self.root = Path(self.root)
        if self.mode not in WATCH_MODES:
            raise ValueError(f"Unknown watch mode '{self.mode}', expected one of {WATCH_MODES}")
        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be positive")


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    file: Optional[str] = None
    format: str = "text"  # text, json or color


@dataclass
class Config:
    """Main configuration class"""
    watch: WatchConfig = field(default_factory=WatchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary"""
        def serialize(obj):
            if isinstance(obj, Path):
                return str(obj)
            elif isinstance(obj, dict):
                return {k: serialize(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [serialize(v) for v in obj]
            else:
                return obj

        return serialize(asdict(self))

    def to_json(self, indent: int = 2) -> str:
        """Convert config to JSON string"""
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def to_yaml(self) -> str:
        """Convert config to YAML string"""
        return yaml.safe_dump(self.to_dict(), default_flow_style=False)

    def save(self, path: Union[str, Path]):
        """Save config to file"""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        if path.suffix.lower() in ['.yaml', '.yml']:
            with open(path, 'w', encoding='utf-8') as f:
                yaml.safe_dump(self.to_dict(), f, default_flow_style=False)
        else:  # default to JSON
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(self.to_dict(), f, indent=2, default=str)

        logger.info(f"Configuration saved to {path}")

    def update_from_dict(self, data: Dict[str, Any]):
        """
        Update config from dictionary

        Top-level keys name a section ("watch", "logging"); keys of a
        section that the dataclass does not know are ignored with a warning.
        """
        sections = {
            'watch': WatchConfig,
            'logging': LoggingConfig,
        }

        for key, value in (data or {}).items():
            if key not in sections:
                logger.warning(f"Unknown configuration section: {key}")
                continue

            current = asdict(getattr(self, key))
            for name, item in (value or {}).items():
                if name in current:
                    current[name] = item
                else:
                    logger.warning(f"Unknown configuration key: {key}.{name}")

            setattr(self, key, sections[key](**current))


def load_config(path: Union[str, Path, None] = None) -> Config:
    """
    Load configuration from file or create default

    Args:
        path: YAML or JSON file; when None, ghostwriter.yaml, ghostwriter.yml
            and ghostwriter.json in the working directory are tried

    Returns:
        Loaded configuration, or defaults when no file exists
    """
    if path:
        config_paths = [Path(path)]
    else:
        config_paths = [
            Path("ghostwriter.yaml"),
            Path("ghostwriter.yml"),
            Path("ghostwriter.json"),
        ]

    for config_path in config_paths:
        if not config_path.exists():
            continue

        logger.info(f"Loading configuration from {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            if config_path.suffix.lower() in ['.yaml', '.yml']:
                data = yaml.safe_load(f)
            else:  # JSON
                data = json.load(f)

        config = Config()
        config.update_from_dict(data)
        return config

    if path:
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("No configuration file found, using defaults")
    return Config()


def save_config(config: Config, path: Union[str, Path] = "ghostwriter.yaml"):
    """Save configuration to file"""
    config.save(path)
