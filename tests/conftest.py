import os

os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("DISPLAY_TIMEZONE", "UTC")

import pytest

from unitprice.models import Item
from unitprice.storage import ComparisonStore


@pytest.fixture
def store(tmp_path):
    return ComparisonStore(str(tmp_path / "comparisons.sqlite3"))


@pytest.fixture
def milk_items():
    return [
        Item(id=1, name="Milk A", price="3.00", amount="1000", unit="ml", unit_type="volume"),
        Item(id=2, name="Milk B", price="5.00", amount="1", unit="L", unit_type="volume"),
    ]
