from pathlib import Path

import pytest

DATA_DIR = Path(__file__).parent / "data"


def data(filename: str) -> str:
    return str(DATA_DIR / filename)


@pytest.fixture
def data_dir() -> Path:
    return DATA_DIR
