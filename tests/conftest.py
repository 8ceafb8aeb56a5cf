import pytest

from svi import logger


@pytest.fixture(autouse=True)
def _log_to_tmp(tmp_path):
    old = logger.LOG_FILE_PATH
    logger.set_log_file(str(tmp_path / "svi.log"))
    yield
    logger.set_log_file(old)
