"""
Utility modules: configuration, logging and retry.
"""

from pyragent.utils.config import RAGConfig, load_config
from pyragent.utils.logging import configure_logging, get_logger, set_log_level
from pyragent.utils.retry import retry_async

__all__ = [
    "RAGConfig",
    "load_config",
    "configure_logging",
    "get_logger",
    "set_log_level",
    "retry_async",
]
