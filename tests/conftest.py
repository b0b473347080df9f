from pathlib import Path

import pytest
from loguru import logger

from dirmon.utils.config import Settings


@pytest.fixture
def log_records():
    """Collect loguru records emitted during a test."""
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


@pytest.fixture
def watch_dir(tmp_path: Path) -> Path:
    path = tmp_path / "watched"
    path.mkdir()
    return path


@pytest.fixture
def shadow_dir(tmp_path: Path) -> Path:
    return tmp_path / "shadow"


@pytest.fixture
def make_settings(watch_dir: Path, shadow_dir: Path):
    def _make(**overrides) -> Settings:
        values = {"monitor_dir": watch_dir, "shadow_dir": shadow_dir}
        values.update(overrides)
        return Settings(**values)

    return _make
