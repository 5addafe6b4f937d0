"""utils package – Vector helpers and the session clock."""

from .clock import SimulationClock
from .vectors import (
    to_vector3, safe_normalize, flat_direction, nearest, centroid,
)
