"""
Pytest configuration for the reconciler tests.

Puts ``backend/`` on the path so ``reconciler`` imports without an install.
"""

import os
import sys
from datetime import datetime, timezone

import pytest

backend_path = os.path.join(os.path.dirname(__file__), "..")
if backend_path not in sys.path:
    sys.path.insert(0, backend_path)

from reconciler.profiles import ReceiverProfileStore, ValidationConfig  # noqa: E402

NOW = datetime(2026, 1, 15, 13, 24, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def profiles() -> ReceiverProfileStore:
    return ReceiverProfileStore.defaults()


@pytest.fixture
def config() -> ValidationConfig:
    return ValidationConfig()
