"""Shared fixtures."""

from __future__ import annotations

import pytest

from helpers import Env


@pytest.fixture()
def env() -> Env:
    """Fresh repositories for each test."""
    return Env()
