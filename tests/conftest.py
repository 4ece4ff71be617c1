#
# Pytest Fixtures
#

# Third-party ----------------------------------------------------------------------------------------------------------
import pytest

# Local ----------------------------------------------------------------------------------------------------------------
from fixp.random import SyncRandom
from fixp.reprs import repr_conf

SEED = 20240101


# Fixtures -------------------------------------------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def range_checks(monkeypatch):
    """Run every test with range checks enabled, whatever FIXP_CHECKED says."""
    monkeypatch.setattr(repr_conf, "checked", True)


@pytest.fixture
def unchecked(monkeypatch):
    """Disable range checks: out of range raw results wrap."""
    monkeypatch.setattr(repr_conf, "checked", False)


@pytest.fixture
def sync_rng() -> SyncRandom:
    return SyncRandom(seed=SEED)
