"""
Selection of the simulation scheme from the current kinetic energy.

Below the crossover energy muons are transported in detail, including
transverse displacements, up to the crossover. Above it a fast
longitudinal simulation runs up to the stepping loop threshold. Reaching
the kinetic limit is thus the expected way of switching scheme.
"""

from typing import Tuple

from muon_mc.core.geometry import FLT_EPSILON
from muon_mc.transport.context import Scheme, TransportContext


# Kinetic energy separating the detailed and hybrid schemes [GeV]
CROSSOVER_KINETIC = 1.0E+02


def select_scheme(kinetic: float, kinetic_threshold: float,
                  crossover: float = CROSSOVER_KINETIC) -> Tuple[Scheme, bool, float]:
    """
    Choose the scheme of the next transport leg.

    Parameters:
        kinetic: Current kinetic energy [GeV]
        kinetic_threshold: Energy ending the stepping loop [GeV]
        crossover: Detailed to hybrid crossover energy [GeV]

    Returns:
        (scheme, longitudinal, kinetic_limit)
    """
    if kinetic < crossover - FLT_EPSILON:
        return Scheme.DETAILED, False, crossover
    return Scheme.HYBRID, True, kinetic_threshold


def apply_scheme(context: TransportContext, kinetic: float,
                 kinetic_threshold: float,
                 crossover: float = CROSSOVER_KINETIC) -> Scheme:
    """Configure a context for the next leg and return the selected scheme."""
    scheme, longitudinal, kinetic_limit = select_scheme(
        kinetic, kinetic_threshold, crossover)
    context.scheme = scheme
    context.longitudinal = longitudinal
    context.kinetic_limit = kinetic_limit
    return scheme
