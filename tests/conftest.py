"""Shared pytest fixtures for rulexpr tests."""

import pytest

from rulexpr.core.environment import MAX_DEPTH_VAR, MAX_NESTING_VAR, ExpressionLimits


@pytest.fixture
def clean_limits_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Clear RULEXPR_* settings so tests see the defaults."""
    monkeypatch.delenv(MAX_NESTING_VAR, raising=False)
    monkeypatch.delenv(MAX_DEPTH_VAR, raising=False)
    return monkeypatch


@pytest.fixture
def tight_limits() -> ExpressionLimits:
    """Small limits for exercising the recursion guards."""
    return ExpressionLimits(max_nesting=4, max_depth=8)

