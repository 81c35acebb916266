"""Public entry points for tag balancing."""

from .balance import balance, balance_to_tree

__all__ = [
    "balance",
    "balance_to_tree",
]
