"""
Runtime configuration for rulexpr.

Compilation limits are read from environment variables so that hosts can
tighten or relax them without code changes:

    RULEXPR_MAX_NESTING: maximum bracket/unary nesting while parsing (default 64)
    RULEXPR_MAX_DEPTH:   maximum nesting depth of a compiled expression tree,
                         where operator chains and selector chains count once (default 256)

Both limits bound the recursion used by the parser and the evaluator, so
adversarial input fails with a syntax error instead of exhausting the stack.

Usage:
    from rulexpr.core.environment import get_limits

    limits = get_limits()
    limits.max_nesting  # 64 unless RULEXPR_MAX_NESTING is set
"""

from __future__ import annotations

import logging
import os

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

MAX_NESTING_VAR = "RULEXPR_MAX_NESTING"
MAX_DEPTH_VAR = "RULEXPR_MAX_DEPTH"

DEFAULT_MAX_NESTING = 64
DEFAULT_MAX_DEPTH = 256


class ExpressionLimits(BaseModel):
    """Recursion limits applied when compiling an expression."""

    max_nesting: int = Field(default=DEFAULT_MAX_NESTING, ge=1, description="Bracket/unary nesting limit")
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1, description="Expression tree depth limit")

    model_config = ConfigDict(frozen=True)


def _read_positive_int(var: str, default: int) -> int:
    """Read a positive integer from the environment, falling back to default."""
    raw = os.environ.get(var, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        value = 0
    if value < 1:
        logger.warning(
            "Invalid %s value '%s'. Expected a positive integer. Defaulting to %d.",
            var,
            raw,
            default,
        )
        return default
    return value


def get_limits() -> ExpressionLimits:
    """Get compilation limits from RULEXPR_MAX_NESTING and RULEXPR_MAX_DEPTH.

    Returns:
        ExpressionLimits: Limits from the environment, with defaults for
        unset or invalid values.

    Examples:
        >>> import os
        >>> os.environ["RULEXPR_MAX_DEPTH"] = "32"
        >>> get_limits().max_depth
        32
    """
    return ExpressionLimits(
        max_nesting=_read_positive_int(MAX_NESTING_VAR, DEFAULT_MAX_NESTING),
        max_depth=_read_positive_int(MAX_DEPTH_VAR, DEFAULT_MAX_DEPTH),
    )
