"""Shared utilities for tag balancing.

This module provides the configuration objects, diagnostic types, and logging
helpers used across the tokenization interface and the tree layer.
"""

from .result import (
    BalancingMetrics,
    DiagnosticEntry,
    DiagnosticSeverity,
)
from .config import (
    BalancerConfig,
    ConfigError,
    ConfigValidationError,
    GlobalConfig,
    NamespaceConfig,
    PruningConfig,
    TreeConfig,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)

__all__ = [
    "BalancingMetrics",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "BalancerConfig",
    "ConfigError",
    "ConfigValidationError",
    "GlobalConfig",
    "NamespaceConfig",
    "PruningConfig",
    "TreeConfig",
    "CorrelationLogger",
    "get_logger",
]
