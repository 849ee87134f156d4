"""
HTTP middleware for the LLM Sandbox.

Request size validation and security headers.
"""

from llm_sandbox.middleware.request_size import request_size_validator
from llm_sandbox.middleware.security_headers import security_headers_middleware

__all__ = ["request_size_validator", "security_headers_middleware"]
