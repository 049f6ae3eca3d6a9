"""Root test configuration: isolate tests from host LEGALMD_* settings"""

import os

import pytest


@pytest.fixture(autouse=True)
def clear_legalmd_env(monkeypatch):
    """Remove LEGALMD_<FIELD> env vars so load_config sees only what a test sets."""
    for name in list(os.environ):
        if name.startswith("LEGALMD_"):
            monkeypatch.delenv(name)
