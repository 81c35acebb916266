"""Token interface for the tag balancer.

Key Components:
    Token: A single open-tag, close-tag, text, comment or doctype token
    TokenType: Enumeration of the supported token kinds
    TokenPosition: Source position carried into repair diagnostics
"""

from .tokens import (
    Token,
    TokenPosition,
    TokenType,
)

__all__ = [
    "Token",
    "TokenPosition",
    "TokenType",
]
