import io
import logging

import pytest

import cadxchange
from cadxchange.errors import ConfigurationError
from cadxchange.logging_config import LOGGER_NAME, resolve_level, setup_logging


class _BrokenCurve:
    is_closed = False
    length = 1.0
    start_point = (0.0, 0.0, 0.0)
    end_point = (1.0, 0.0, 0.0)

    def point_at_parameter(self, t):
        raise RuntimeError("host session closed")

    def __repr__(self):
        return "BrokenCurve"


@pytest.fixture
def clean_logger():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


def test_level_names():
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level(" WARNING ") == logging.WARNING
    assert resolve_level(logging.ERROR) == logging.ERROR
    with pytest.raises(ConfigurationError):
        resolve_level("chatty")
    with pytest.raises(ConfigurationError):
        resolve_level(True)


def test_setup_is_idempotent(clean_logger):
    logger = setup_logging("DEBUG")
    assert logger.name == "cadxchange"
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
    setup_logging(logging.INFO)
    assert len(logger.handlers) == 1
    assert logger.handlers[0].level == logging.INFO


def test_application_handlers_are_kept(clean_logger):
    logger = logging.getLogger(LOGGER_NAME)
    mine = logging.NullHandler()
    logger.addHandler(mine)
    setup_logging()
    setup_logging()
    assert mine in logger.handlers
    assert len(logger.handlers) == 2


def test_stream_receives_classifier_fallback(clean_logger):
    buf = io.StringIO()
    cadxchange.setup_logging("warning", stream=buf)
    assert cadxchange.classify(_BrokenCurve()) is cadxchange.CurveType.UNCLASSIFIED
    text = buf.getvalue()
    assert "WARNING cadxchange.classify: could not read BrokenCurve" in text
    assert "DEBUG" not in text


def test_log_file_receives_module_output(tmp_path, clean_logger):
    path = tmp_path / "run.log"
    setup_logging(logging.DEBUG, log_file=str(path), stream=io.StringIO())
    logging.getLogger("cadxchange.classify").debug("hello from the classifier")
    for handler in logging.getLogger(LOGGER_NAME).handlers:
        handler.flush()
    text = path.read_text()
    assert "DEBUG   cadxchange.classify: hello from the classifier" in text
