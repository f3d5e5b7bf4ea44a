import pathlib
import sys

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from datadash.datasets import DatasetRegistry
from datadash.filters import FilterEngine


@pytest.fixture
def sales_rows():
    return [
        {"Date": "01/03/2024", "Buyer Type": "B2B", "Name": "Agro Traders", "Quantity": "10", "Price": "1,200", "Month": "March"},
        {"Date": "2024-03-15", "Buyer Type": "B2C", "Name": "Walk-in", "Quantity": "4", "Price": "800", "Month": "March"},
        {"Date": "2024-04-02", "Buyer Type": "B2B", "Name": "Green Farms", "Quantity": "20", "Price": "₹2,500", "Month": "April"},
        {"Date": 45397, "Buyer Type": "b2b", "Name": "Agro Traders", "Quantity": 5, "Price": 600, "Month": "April"},
        {"Date": "2024-05-20", "Buyer Type": "B2C", "Name": "Walk-in", "Quantity": "bad", "Price": "", "Month": "May"},
    ]


@pytest.fixture
def claim_rows():
    return [
        {"State": "Punjab", "Eligible Amount": "1000", "Amount Received": "800"},
        {"State": "Haryana", "Eligible Amount": "500", "Amount Received": "0"},
        {"State": "Punjab", "Eligible Amount": "0", "Amount Received": "0"},
    ]


@pytest.fixture
def registry():
    return DatasetRegistry()


@pytest.fixture
def engine():
    return FilterEngine()
