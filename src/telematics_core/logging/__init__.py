"""
Structured logging setup for telematics engines
"""

from telematics_core.logging.setup import get_logger, setup_logging

__all__ = ["setup_logging", "get_logger"]
