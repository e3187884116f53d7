"""
-------
conftest.py
-------
Shared pytest fixtures for curve tessellation tests.
"""

import math

import pytest
import matplotlib
matplotlib.use("Agg")  # ensure headless backend for CI and multiprocessing
import matplotlib.pyplot as plt

from curves.descriptors import Arc, BSpline, Bezier, Circle, ClosedBSpline, Diagonal, Link
from curves.batch import CurveInstance
from runner.config import RunnerConfig


# -----------------------------------------------------------------------------
# Core Matplotlib fixtures
# -----------------------------------------------------------------------------
@pytest.fixture(scope="function")
def fig_ax():
  """
  Create and yield an isolated Matplotlib Figure/Axes pair.

  The figure is automatically closed after the test to avoid memory leaks.
  """
  fig, ax = plt.subplots(figsize=(4, 3))
  yield fig, ax
  plt.close(fig)


# -----------------------------------------------------------------------------
# Descriptor fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def quarter_arc() -> Arc:
  """Unit quarter arc from (1, 0) to (0, 1)."""
  return Arc(0.0, 0.0, 1.0, 0.0, math.pi / 2)


@pytest.fixture
def cubic() -> Bezier:
  return Bezier([(0, 0), (1, 2), (3, 2), (4, 0)])


@pytest.fixture
def open_curves():
  """One descriptor per open curve kind."""
  return [
      Arc(1.0, -1.0, 2.0, 0.3, 2.5),
      Bezier([(0, 0), (1, 1)]),
      Bezier([(0, 0), (1, 2), (2, 0)]),
      Bezier([(0, 0), (1, 2), (3, 2), (4, 0)]),
      Bezier([(0, 0), (1, 3), (2, -1), (3, 2), (4, 0)]),
      BSpline([(0, 0), (1, 2), (2, 0)]),
      BSpline([(0, 0), (1, 2), (2, 0), (3, 2), (4, 0), (5, 1)]),
      Link((0.5, 0.5), (2.0, -3.0)),
      Diagonal((0, 0), (2, 1)),
  ]


@pytest.fixture
def closed_curves():
  return [
      Circle(0.0, 0.0, 1.5),
      Arc(0.0, 0.0, 2.0, 0.0, math.pi, r0=1.0),
      ClosedBSpline([(0, 0), (1, 0), (1, 1), (0, 1)]),
  ]


@pytest.fixture
def instances():
  """Three mixed instances with gradient and constant attributes."""
  return [
      CurveInstance(Arc(0, 0, 1, 0, math.pi), group="arc",
                    gradient={"size": (1.0, 3.0)}, constant={"linetype": "dashed"}),
      CurveInstance(Bezier([(0, 0), (1, 2), (2, 0)]), group="bezier",
                    gradient={"colour": ("red", "blue")}),
      CurveInstance(Link((0, 0), (1, 1)), group="link",
                    gradient={"size": (2.0, 2.0)}, constant={"colour": "green"}),
  ]


# -----------------------------------------------------------------------------
# Runner fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def runner_config(tmp_path) -> RunnerConfig:
  """Two-process config writing into a temporary directory, console logging only."""
  return RunnerConfig(processes=2, chunk_size=2, output_dir=tmp_path / "out", log_dir=None)
