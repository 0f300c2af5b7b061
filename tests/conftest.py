from __future__ import annotations

import logging

import pytest

from foundation_sdk.log import Log
from foundation_sdk.request_options import BASELINE_OPTIONS, default_options


@pytest.fixture(autouse=True)
def _reset_process_state():
    Log.reset()
    default_options.set_defaults(BASELINE_OPTIONS)
    yield
    Log.reset()
    default_options.set_defaults(BASELINE_OPTIONS)


@pytest.fixture
def debug_logger(caplog) -> logging.Logger:
    logger = logging.getLogger("tests.foundation")
    caplog.set_level(logging.DEBUG, logger="tests.foundation")
    Log.set_logger(logger)
    return logger
