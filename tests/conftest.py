import sys
import os

# Ensure project root is on sys.path so `import foodweb...` works in tests
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import pytest

from foodweb.simulation import build_tables
from foodweb.utils.config import SweepConfig


@pytest.fixture
def small_cfg():
    # 2000 steps, 4 samples per level
    return SweepConfig(dt=0.1, max_time=200.0, time_out=50.0, sweep_count=3)


@pytest.fixture
def tables(small_cfg):
    return build_tables(small_cfg)
