"""
Muon state used by the transport engine and the flux integrator.

A state is owned by a single trajectory. Only the transport engine mutates
it, between two geometry queries.
"""

import numpy as np
from typing import Tuple


# Structured layout for dumping final states (one row per trajectory)
STATE_DTYPE = np.dtype([
    ('charge', np.float64),           # elementary charge units
    ('kinetic', np.float64),          # GeV
    ('weight', np.float64),           # Monte Carlo weight
    ('position', np.float64, 3),      # x, y, z [m]
    ('direction', np.float64, 3),     # unit vector
    ('distance', np.float64),         # path length [m]
])


class ParticleState:
    """Kinematic state of a single muon."""

    def __init__(self, charge: float = -1.0, kinetic: float = 1.0,
                 weight: float = 1.0,
                 position: Tuple[float, float, float] = (0.0, 0.0, 0.0),
                 direction: Tuple[float, float, float] = (0.0, 0.0, 1.0),
                 distance: float = 0.0):
        """
        Initialize a muon state.

        Parameters:
            charge: Electric charge, -1 for mu-, +1 for mu+
            kinetic: Kinetic energy [GeV]
            weight: Monte Carlo weight (may exceed 1 when biased)
            position: (x, y, z) position [m]
            direction: (ux, uy, uz) momentum direction (normalized internally)
            distance: Accumulated path length [m]
        """
        if kinetic < 0.0:
            raise ValueError(f"kinetic energy must be non negative, got {kinetic}")

        self.charge = float(charge)
        self.kinetic = float(kinetic)
        self.weight = float(weight)
        self.position = np.array(position, dtype=np.float64)

        dir_array = np.array(direction, dtype=np.float64)
        norm = np.linalg.norm(dir_array)
        if norm <= 0.0:
            raise ValueError("direction must be a non null vector")
        self.direction = dir_array / norm

        self.distance = float(distance)

    def to_structured_array(self) -> np.ndarray:
        """Convert to a one row structured array."""
        record = np.zeros(1, dtype=STATE_DTYPE)
        record['charge'][0] = self.charge
        record['kinetic'][0] = self.kinetic
        record['weight'][0] = self.weight
        record['position'][0] = self.position
        record['direction'][0] = self.direction
        record['distance'][0] = self.distance
        return record

    def __repr__(self) -> str:
        x, y, z = self.position
        ux, uy, uz = self.direction
        return (f"ParticleState(charge={self.charge:+.0f}, "
                f"kinetic={self.kinetic:.5g} GeV, weight={self.weight:.5g}, "
                f"position=({x:.5g}, {y:.5g}, {z:.5g}), "
                f"direction=({ux:.5g}, {uy:.5g}, {uz:.5g}))")
