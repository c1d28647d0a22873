# Common utilities
from dpstore.common.logging_utils import setup_logger as setup_logger
from dpstore.common.mixins import Configurable as Configurable

__all__ = ["Configurable", "setup_logger"]
