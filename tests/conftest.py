import os

import pytest

# ---------------------------------------------------------------------------
# Keep the caller's environment out of config-driven tests
# ---------------------------------------------------------------------------

_ENV_OVERRIDES = (
    "JPEGSWEEP_START_METHOD",
    "JPEGSWEEP_NVJPEG_LIBRARY",
    "JPEGSWEEP_CUDART_LIBRARY",
)


@pytest.fixture(autouse=True)
def _clean_jpegsweep_env(monkeypatch):
    """Drop JPEGSWEEP_* overrides so every test sees the built-in defaults."""
    for name in _ENV_OVERRIDES:
        if name in os.environ:
            monkeypatch.delenv(name)
