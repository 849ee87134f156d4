"""
LLM Sandbox: chat completion relay with response logging
"""

__version__ = "0.2.0"

from llm_sandbox.config import Settings
from llm_sandbox.main import create_app

__all__ = ["Settings", "create_app", "__version__"]
