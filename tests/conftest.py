import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest

from skdp.models.search import SearchProblem

# Deterministic test seed - change this single value to modify all seeding
TEST_SEED = 10077693


@pytest.fixture(scope="session")
def search_problem():
    """The default job search calibration, shared across tests."""
    return SearchProblem()
