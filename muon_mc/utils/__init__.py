"""Utility modules: logging."""

from muon_mc.utils.logging import setup_logger, get_logger

__all__ = ["setup_logger", "get_logger"]
