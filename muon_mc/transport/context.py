"""
Transport context shared between the flux integrator and the engine.

The context carries everything a transport leg needs besides the muon
state: the geometry callback, the PRNG, the simulation scheme and the
kinetic limit. Each run owns its context and generator.
"""

import enum
from typing import Callable

import numpy as np


class Scheme(enum.Enum):
    """Simulation fidelity of a transport leg."""
    DETAILED = 'detailed'   # angular and transverse transport
    HYBRID = 'hybrid'       # longitudinal only


class Event(enum.IntFlag):
    """Reasons for a transport leg to stop."""
    NONE = 0
    MEDIUM = 1              # a layer or the simulation area boundary was crossed
    LIMIT_KINETIC = 2       # the kinetic limit was reached


class TransportContext:
    """
    Configuration of the transport engine for the next leg.

    Attributes:
        medium: Geometry callback, state -> (layer or None, step)
        random: Callable returning uniform draws over [0, 1)
        scheme: Simulation scheme
        longitudinal: Disable transverse transport if True
        kinetic_limit: Kinetic energy at which the leg stops [GeV]
        forward: Time direction, False for backward transport
        event: Enabled stop conditions
    """

    def __init__(self, medium: Callable, random: Callable[[], float],
                 scheme: Scheme = Scheme.HYBRID, longitudinal: bool = True,
                 kinetic_limit: float = 0.0, forward: bool = True,
                 event: Event = Event.NONE):
        self.medium = medium
        self.random = random
        self.scheme = scheme
        self.longitudinal = longitudinal
        self.kinetic_limit = kinetic_limit
        self.forward = forward
        self.event = event

    @classmethod
    def create(cls, medium: Callable, seed=None, **kwargs) -> 'TransportContext':
        """
        Create a context owning a private random generator.

        Parameters:
            medium: Geometry callback
            seed: Seed, or SeedSequence, for numpy.random.default_rng
            kwargs: Other context attributes

        Returns:
            TransportContext instance
        """
        generator = np.random.default_rng(seed)
        return cls(medium, generator.random, **kwargs)

    def uniform01(self) -> float:
        """Draw a uniform number over [0, 1)."""
        return self.random()

    def __repr__(self) -> str:
        direction = 'forward' if self.forward else 'backward'
        return (f"TransportContext({direction}, scheme={self.scheme.value}, "
                f"kinetic_limit={self.kinetic_limit:.5g}, event={self.event!r})")
