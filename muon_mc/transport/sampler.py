"""
Biased sampling of the final state kinetic energy.

For an integral estimate the final kinetic energy is drawn from a log
uniform distribution over [kinetic_min, kinetic_max] and the Monte Carlo
weight is set to 1 / PDF(kf), so that

    E[wf * f(kf)] = integral of f(k) dk over [kinetic_min, kinetic_max]

The weight multiplies every flux contribution of the trajectory.
"""

from typing import Tuple

import numpy as np


def sample_final_state(kinetic_min: float, kinetic_max: float,
                       u: float) -> Tuple[float, float]:
    """
    Draw a final kinetic energy and its weight.

    Parameters:
        kinetic_min: Lower kinetic energy [GeV]
        kinetic_max: Upper kinetic energy [GeV]
        u: Uniform draw over [0, 1)

    Returns:
        (kinetic, weight); (kinetic_min, 1) for a point estimate
    """
    rk = np.log(kinetic_max / kinetic_min)
    if rk:
        kf = kinetic_min * np.exp(rk * u)
        return float(kf), float(kf * rk)
    return float(kinetic_min), 1.0
