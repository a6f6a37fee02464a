import sys
from pathlib import Path

import pytest
import requests


# Ensure tests can import project packages regardless of how pytest is invoked.
ROOT = Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT)
if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)


@pytest.fixture(autouse=True)
def _block_outbound_http(monkeypatch):
    """Fail loudly if a test reaches a real provider or search endpoint."""

    def _refuse(self, method, url, *args, **kwargs):
        raise AssertionError(f"unexpected outbound request: {method} {url}")

    monkeypatch.setattr(requests.Session, "request", _refuse)
