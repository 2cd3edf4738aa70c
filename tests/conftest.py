import logging

import pytest

from hue_backup.config import ENV_CONFIG_HOME
from hue_backup.log import ROOT_LOGGER


@pytest.fixture(autouse=True)
def config_home(tmp_path, monkeypatch):
    home = tmp_path / "hue-home"
    monkeypatch.setenv(ENV_CONFIG_HOME, str(home))
    return home


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
