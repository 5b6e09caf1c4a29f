"""
ghostwriter utilities
"""
from .config import Config, WatchConfig, LoggingConfig, load_config, save_config
from .logger import setup_logging, log_exception
from .file_utils import relative_path, absolute_path, walk_tree

__all__ = [
    'Config', 'WatchConfig', 'LoggingConfig', 'load_config', 'save_config',
    'setup_logging', 'log_exception',
    'relative_path', 'absolute_path', 'walk_tree',
]
