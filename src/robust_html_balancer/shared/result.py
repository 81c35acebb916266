"""Diagnostic and metric types shared by the balancing components.

Malformed markup never produces an error for the caller; instead every repair
that was applied is reported through the objects defined here.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()      # Debug-level information
    INFO = auto()       # Repairs applied to ordinary tag soup
    WARNING = auto()    # Input that was discarded or ignored
    ERROR = auto()      # Conditions the balancer could not repair
    CRITICAL = auto()   # Conditions that invalidate the result


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    position: Optional[Dict[str, int]] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        """Convert diagnostic to a JSON-friendly dictionary."""
        result: Dict[str, Any] = {
            "severity": self.severity.name,
            "message": self.message,
            "component": self.component,
        }
        if self.position:
            result["position"] = dict(self.position)
        if self.details:
            result["details"] = dict(self.details)
        if self.correlation_id:
            result["correlation_id"] = self.correlation_id
        return result


@dataclass
class BalancingMetrics:
    """Counters collected while balancing one document."""

    processing_time_ms: float = 0.0
    tokens_processed: int = 0
    nodes_created: int = 0
    implicit_closes: int = 0
    forced_closes: int = 0
    reopened_elements: int = 0
    orphan_close_tags: int = 0
    nodes_pruned: int = 0

    @property
    def tokens_per_second(self) -> float:
        """Calculate tokens processed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.tokens_processed * 1000.0) / self.processing_time_ms

    @property
    def total_repairs(self) -> int:
        """Number of structural repairs applied to the token stream."""
        return (
            self.implicit_closes
            + self.forced_closes
            + self.reopened_elements
            + self.orphan_close_tags
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "processing_time_ms": self.processing_time_ms,
            "tokens_processed": self.tokens_processed,
            "nodes_created": self.nodes_created,
            "implicit_closes": self.implicit_closes,
            "forced_closes": self.forced_closes,
            "reopened_elements": self.reopened_elements,
            "orphan_close_tags": self.orphan_close_tags,
            "nodes_pruned": self.nodes_pruned,
            "total_repairs": self.total_repairs,
        }
