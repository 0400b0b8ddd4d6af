import os
import sys

import pytest

# Add parent directory to path to allow importing aggregator and main
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from aggregator import suggestions
from routes import rate_limit


@pytest.fixture(autouse=True)
def reset_process_state():
    """Rate-limit windows and custom suggestion terms are process-wide."""
    rate_limit.rate_limit_store.clear()
    yield
    rate_limit.rate_limit_store.clear()
    suggestions.set_custom_terms([])
