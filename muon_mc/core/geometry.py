"""
Flat layered geometry: a rock layer under an exponential atmosphere.

The detector sits at the origin. Altitudes are measured along z:

    z < 0                 outside (below the detector)
    0 <= z < T            rock, T the rock thickness
    T <= z < A            air, A the primary sampling altitude
    z >= A                outside (primary flux is evaluated here)

Distances to boundaries are computed in closed form from the vertical
direction cosine only. Nearly horizontal directions fall back to a fixed
default step instead of an exact tangential computation.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numba
import numpy as np

from muon_mc.errors import ConfigError


# Altitude at which the primary flux is sampled [m]
PRIMARY_ALTITUDE = 1.0E+03

# Step returned when the direction is nearly horizontal [m]
DEFAULT_STEP = 1.0E+03

# Direction cosines within this bound count as horizontal
FLT_EPSILON = float(np.finfo(np.float32).eps)

# Region codes returned by classify_altitude
EXIT_REGION = -1
ROCK_REGION = 0
AIR_REGION = 1


@numba.njit(cache=True)
def classify_altitude(z: float, uz: float, rock_thickness: float,
                      primary_altitude: float,
                      default_step: float) -> Tuple[int, float]:
    """
    Locate an altitude and compute the distance to the next boundary.

    Transport is backward: a positive uz moves the muon down, towards the
    lower bound of its region, and a negative uz moves it up.

    Parameters:
        z: Altitude [m]
        uz: Vertical direction cosine
        rock_thickness: Rock layer thickness [m]
        primary_altitude: Top of the simulation area [m]
        default_step: Step used for nearly horizontal directions [m]

    Returns:
        (region, step): region code and step [m]; step is -1 outside
    """
    step = default_step
    if z < 0.0:
        return EXIT_REGION, -1.0
    elif z < rock_thickness:
        if uz > FLT_EPSILON:
            # Rock bottom
            step = z / uz
        elif uz < -FLT_EPSILON:
            # Rock-air interface
            step = (z - rock_thickness) / uz
        return ROCK_REGION, step
    elif z < primary_altitude:
        if uz > FLT_EPSILON:
            # Rock-air interface
            step = (z - rock_thickness) / uz
        elif uz < -FLT_EPSILON:
            # Top of the atmosphere
            step = (z - primary_altitude) / uz
        return AIR_REGION, step
    else:
        return EXIT_REGION, -1.0


@dataclass(frozen=True)
class LocalProperties:
    """Medium properties at the current muon position."""
    density: float                          # kg/m^3
    magnet: Optional[np.ndarray] = None     # T


@dataclass(frozen=True)
class Layer:
    """Base layer: a material and a way to evaluate local properties."""
    name: str
    material: str

    def provide_local_properties(self, state) -> Tuple[LocalProperties, float]:
        """
        Evaluate the medium at the state position.

        Returns:
            (properties, step): step <= 0 flags a uniform medium, otherwise
            it is a soft cap on the next step length [m]
        """
        raise NotImplementedError


@dataclass(frozen=True)
class UniformLayer(Layer):
    """Uniform medium, e.g. rock. The geomagnetic field is neglected."""
    density: float = 2.65E+03

    def provide_local_properties(self, state) -> Tuple[LocalProperties, float]:
        return LocalProperties(self.density), 0.0


@dataclass(frozen=True)
class ExponentialLayer(Layer):
    """Exponential atmosphere with a uniform geomagnetic field."""
    rho0: float = 1.205
    scale_height: float = 12.0E+03
    magnet: Tuple[float, float, float] = (0.0, 2.0E-05, -4.0E-05)
    cap_fraction: float = 1.0E-02
    cos_min: float = 5.0E-02

    def density_at(self, z: float) -> float:
        """Density at altitude z [kg/m^3]."""
        return self.rho0 * np.exp(-z / self.scale_height)

    def provide_local_properties(self, state) -> Tuple[LocalProperties, float]:
        density = self.density_at(state.position[2])
        properties = LocalProperties(density, np.array(self.magnet, dtype=np.float64))

        # 1% of the density attenuation length, projected on the direction
        uz = abs(state.direction[2])
        step = self.cap_fraction * self.scale_height / (self.cos_min if uz <= self.cos_min else uz)
        return properties, step


class LayeredGeometry:
    """
    Rock and air layers between the ground and the primary altitude.

    Example:
        geometry = LayeredGeometry(rock_thickness=100.0)
        layer, step = geometry.classify(state)
    """

    def __init__(self, rock_thickness: float = 0.0,
                 primary_altitude: float = PRIMARY_ALTITUDE,
                 default_step: float = DEFAULT_STEP,
                 rock: Optional[Layer] = None,
                 air: Optional[Layer] = None):
        """
        Initialize the geometry.

        Parameters:
            rock_thickness: Rock layer thickness [m], within [0, primary_altitude]
            primary_altitude: Altitude of the top boundary [m]
            default_step: Step used for nearly horizontal directions [m]
            rock: Rock layer (StandardRock uniform layer if None)
            air: Air layer (exponential atmosphere if None)
        """
        if not 0.0 <= rock_thickness <= primary_altitude:
            raise ConfigError(
                f"rock thickness must be within [0, {primary_altitude:g}] m, "
                f"got {rock_thickness:g}")
        if default_step <= 0.0:
            raise ConfigError(f"default step must be positive, got {default_step:g}")

        self.rock_thickness = float(rock_thickness)
        self.primary_altitude = float(primary_altitude)
        self.default_step = float(default_step)

        self.rock = rock if rock is not None else UniformLayer('rock', 'StandardRock')
        self.air = air if air is not None else ExponentialLayer('air', 'Air')
        self.layers = (self.rock, self.air)

    def classify(self, state) -> Tuple[Optional[Layer], float]:
        """
        Find the layer holding the state and the distance to its boundary.

        Returns:
            (layer, step): layer is None and step negative outside the
            simulation area
        """
        region, step = classify_altitude(
            float(state.position[2]), float(state.direction[2]),
            self.rock_thickness, self.primary_altitude, self.default_step)
        if region == EXIT_REGION:
            return None, step
        return self.layers[region], step

    __call__ = classify

    def is_top_exit(self, state) -> bool:
        """Check if a state left the simulation area through the top."""
        return state.position[2] >= self.primary_altitude

    def __repr__(self) -> str:
        return (f"LayeredGeometry(rock_thickness={self.rock_thickness:g} m, "
                f"primary_altitude={self.primary_altitude:g} m)")
