"""Module-level entry points for tag balancing.

Most callers only need these two functions; ``TagBalancer`` is the
configured, reusable form behind them.
"""

from typing import Iterable, Optional

from robust_html_balancer.shared import BalancerConfig
from robust_html_balancer.tokenization import Token
from robust_html_balancer.tree import BalanceResult, TagBalancer, TagNode


def balance(
    tokens: Iterable[Token],
    config: Optional[BalancerConfig] = None,
    correlation_id: Optional[str] = None,
) -> BalanceResult:
    """Balance a token stream into a repaired tree.

    Args:
        tokens: Open-tag, close-tag, text, comment and doctype tokens
        config: Optional balancer configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        BalanceResult with the repaired tree, repair records and metrics

    Examples:
        >>> result = balance([
        ...     Token.open_tag("b"), Token.open_tag("i"), Token.text("foo"),
        ...     Token.close_tag("b"), Token.text("bar"),
        ... ])
        >>> [child.name for child in result.root.child_tags]
        ['b', 'i']
        >>> result.root.child_tags[1].auto_generated
        True
    """
    return TagBalancer(config, correlation_id=correlation_id).build(tokens)


def balance_to_tree(
    tokens: Iterable[Token], config: Optional[BalancerConfig] = None
) -> TagNode:
    """Balance a token stream and return only the root node."""
    return TagBalancer(config).process(tokens)
