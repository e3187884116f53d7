"""
test_logging_utils.py
---------------------
Unit tests for logging_utils.py
"""

import sys
import logging
from logging.handlers import RotatingFileHandler

import pytest

from runner.logging_utils import ColorFormatter, configure_logging


@pytest.fixture
def logger_name():
  name = "curves-test-logger"
  yield name
  logger = logging.getLogger(name)
  for h in list(logger.handlers):
    logger.removeHandler(h)
    h.close()


def test_file_logging(tmp_path, logger_name):
  path = configure_logging(level=logging.DEBUG, log_dir=tmp_path / "logs",
                           name=logger_name, run_prefix="unit")
  logger = logging.getLogger(logger_name)
  assert path.parent == tmp_path / "logs"
  assert path.name.startswith("unit_PID")
  assert logger.level == logging.DEBUG
  assert any(isinstance(h, RotatingFileHandler) for h in logger.handlers)

  logger.warning("written to file")
  for h in logger.handlers:
    h.flush()
  text = path.read_text(encoding="utf-8")
  assert "written to file" in text
  assert f"[{logger_name}]" in text


def test_console_only(logger_name):
  assert configure_logging(log_dir=None, name=logger_name) is None
  handlers = logging.getLogger(logger_name).handlers
  assert len(handlers) == 1
  assert isinstance(handlers[0].formatter, ColorFormatter)


def test_reconfigure_replaces_handlers(tmp_path, logger_name):
  configure_logging(log_dir=tmp_path, name=logger_name)
  configure_logging(log_dir=tmp_path, name=logger_name)
  assert len(logging.getLogger(logger_name).handlers) == 2


def test_color_formatter_includes_name_and_exception():
  fmt = ColorFormatter(datefmt="%H:%M:%S")
  try:
    raise ValueError("bad radius")
  except ValueError:
    record = logging.LogRecord("curves", logging.ERROR, __file__, 1, "sampling failed", None, sys.exc_info())
  text = fmt.format(record)
  assert "[curves]" in text
  assert "sampling failed" in text
  assert "ValueError: bad radius" in text
  assert "ERROR" in text
