# conftest.py
import logging

import pytest


# Custom test markers
def pytest_configure(config):
    """Configure custom markers."""
    markers = [
        "sql: marks tests that need a SQLAlchemy engine",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)


@pytest.fixture(autouse=True)
def quiet_sqlalchemy():
    """Keep engine echo out of captured test output."""
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    yield
