"""
Multiple Coulomb scattering and magnetic deflection of muons.

Small angle Gaussian approximation with the Highland width. The random
draws are taken from the transport context PRNG so that a run stays
reproducible from its seed.

References:
    - Highland, NIM 129, 497 (1975)
    - PDG Review of Particle Physics (Passage of particles through matter)
"""

import numba
import numpy as np

from muon_mc.physics.flux import MUON_MASS


# c in GeV / (T m), for the magnetic rigidity
LARMOR_FACTOR = 0.299792458


@numba.njit(cache=True)
def highland_angle(kinetic: float, charge: float, grammage: float,
                   X0: float) -> float:
    """
    RMS projected scattering angle of a muon.

        θ_rms = (13.6 MeV / βcp) * |z| * sqrt(x/X0) * [1 + 0.038*ln(x/X0)]

    Parameters:
        kinetic: Kinetic energy [GeV]
        charge: Muon charge
        grammage: Column depth crossed [kg/m^2]
        X0: Radiation length [kg/m^2]

    Returns:
        RMS scattering angle [radians]
    """
    energy = kinetic + MUON_MASS
    momentum = np.sqrt(energy * energy - MUON_MASS * MUON_MASS)
    beta_p = momentum * momentum / energy

    x_over_X0 = grammage / X0
    if x_over_X0 <= 1e-10 or beta_p <= 0.0:
        return 0.0

    theta_rms = (13.6E-03 / beta_p) * abs(charge) * np.sqrt(x_over_X0) * \
                (1.0 + 0.038 * np.log(x_over_X0))
    return theta_rms if theta_rms > 0.0 else 0.0


@numba.njit(cache=True)
def rotate_direction(direction: np.ndarray, theta: float, phi: float) -> np.ndarray:
    """
    Rotate a unit vector by a polar angle theta and an azimuth phi.

    Parameters:
        direction: Unit vector [x, y, z]
        theta: Polar angle [radians]
        phi: Azimuthal angle [radians]

    Returns:
        Rotated unit vector
    """
    ux, uy, uz = direction[0], direction[1], direction[2]
    if theta < 1e-10:
        return direction.copy()

    # Orthonormal basis (e1, e2) transverse to u
    if abs(uz) > 0.99:
        norm = np.sqrt(ux * ux + uz * uz)
        e1x, e1y, e1z = uz / norm, 0.0, -ux / norm
    else:
        norm = np.sqrt(ux * ux + uy * uy)
        e1x, e1y, e1z = -uy / norm, ux / norm, 0.0
    e2x = uy * e1z - uz * e1y
    e2y = uz * e1x - ux * e1z
    e2z = ux * e1y - uy * e1x

    ct, st = np.cos(theta), np.sin(theta)
    cp, sp = np.cos(phi), np.sin(phi)

    result = np.empty(3, dtype=np.float64)
    result[0] = ct * ux + st * (cp * e1x + sp * e2x)
    result[1] = ct * uy + st * (cp * e1y + sp * e2y)
    result[2] = ct * uz + st * (cp * e1z + sp * e2z)
    return result / np.sqrt(result[0] ** 2 + result[1] ** 2 + result[2] ** 2)


def scatter(direction: np.ndarray, theta_rms: float, random) -> np.ndarray:
    """
    Apply a random multiple scattering deflection.

    The polar angle follows the space angle distribution of a 2D Gaussian
    with projected width theta_rms (Rayleigh), the azimuth is uniform.

    Parameters:
        direction: Unit vector [x, y, z]
        theta_rms: Projected RMS angle [radians]
        random: Callable returning uniform draws over [0, 1)

    Returns:
        New unit vector
    """
    if theta_rms <= 0.0:
        return direction
    theta = theta_rms * np.sqrt(-2.0 * np.log(1.0 - random()))
    phi = 2.0 * np.pi * random()
    return rotate_direction(direction, theta, phi)


@numba.njit(cache=True)
def magnetic_deflection(direction: np.ndarray, magnet: np.ndarray,
                        charge: float, kinetic: float, step: float,
                        backward: bool) -> np.ndarray:
    """
    Bend a direction in a uniform magnetic field over a short step.

    First order in the step: du = (q c / p) (u x B) ds, with the sign
    reversed for backward transport.

    Parameters:
        direction: Unit momentum direction
        magnet: Magnetic field [T]
        charge: Muon charge
        kinetic: Kinetic energy [GeV]
        step: Step length [m]
        backward: Reverse the time direction

    Returns:
        New unit vector
    """
    energy = kinetic + MUON_MASS
    momentum = np.sqrt(energy * energy - MUON_MASS * MUON_MASS)
    if momentum <= 0.0:
        return direction.copy()

    factor = LARMOR_FACTOR * charge * step / momentum
    if backward:
        factor = -factor

    ux, uy, uz = direction[0], direction[1], direction[2]
    bx, by, bz = magnet[0], magnet[1], magnet[2]
    result = np.empty(3, dtype=np.float64)
    result[0] = ux + factor * (uy * bz - uz * by)
    result[1] = uy + factor * (uz * bx - ux * bz)
    result[2] = uz + factor * (ux * by - uy * bx)
    return result / np.sqrt(result[0] ** 2 + result[1] ** 2 + result[2] ** 2)
