from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from tests._fixtures.snapshot_builder import SnapshotBuilder


@pytest.fixture
def snapshot_builder(tmp_path: Path) -> SnapshotBuilder:
    """Provide a reusable snapshot builder rooted at the pytest tmp_path."""
    return SnapshotBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _reset_fusion_logger() -> Iterator[None]:
    """Drop handlers installed by CLI runs so later tests do not write to closed streams."""
    yield
    logger = logging.getLogger("fusion")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
