"""
Logging utilities.

Usage:
    from src.logging import get_logger

    logger = get_logger("Question.Orchestrator")
    logger.info("Starting workflow")
    logger.success("Workflow completed")
"""

from .logger import SUCCESS, Logger, get_logger
from .stats import LLMStats

__all__ = ["SUCCESS", "Logger", "LLMStats", "get_logger"]
