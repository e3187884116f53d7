"""
-------
test_determinism.py
-------
"""

import numpy as np

from curves.batch import CurveInstance, run
from curves.resolution import SampleResolution
from curves.sampler import sample


def test_instance_output_does_not_depend_on_neighbours(open_curves, closed_curves):
  """
  Points of an instance must be bit-identical whether it is sampled alone,
  inside a batch, or after other curves in a different order.
  """
  descriptors = open_curves + closed_curves
  forward = run([CurveInstance(d) for d in descriptors], 17)
  backward = run([CurveInstance(d) for d in reversed(descriptors)], 17)

  k = len(descriptors)
  for i, descriptor in enumerate(descriptors):
    alone = sample(descriptor, 17)
    fwd, _ = forward.curve(i)
    bwd, _ = backward.curve(k - 1 - i)
    np.testing.assert_array_equal(fwd.points, alone.points)
    np.testing.assert_array_equal(bwd.points, alone.points)


def test_adaptive_resolution_is_repeatable(open_curves):
  res = SampleResolution.adaptive(max_chord=0.05)
  first = [sample(d, res).points for d in open_curves]
  second = [sample(d, res).points for d in open_curves]
  for a, b in zip(first, second):
    np.testing.assert_array_equal(a, b)
