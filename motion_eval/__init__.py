"""Evaluation of LiDAR motion detection against ground truth."""

__version__ = "0.1.0"

from . import sensors
from . import eval
from . import utils
