"""
Utility modules for the LLM Sandbox.

This module provides error handling, logging, templates and usage tracking.
"""

from llm_sandbox.utils.errors import (
    ConfigurationError,
    MissingVariableError,
    SandboxError,
    TemplateNotFoundError,
    UnknownProviderError,
    UpstreamError,
)
from llm_sandbox.utils.logging import get_logger, setup_logging
from llm_sandbox.utils.prompts import TemplateStore, extract_variables, interpolate

__all__ = [
    # Errors
    "SandboxError",
    "ConfigurationError",
    "UpstreamError",
    "UnknownProviderError",
    "TemplateNotFoundError",
    "MissingVariableError",
    # Logging
    "get_logger",
    "setup_logging",
    # Templates
    "TemplateStore",
    "extract_variables",
    "interpolate",
]
