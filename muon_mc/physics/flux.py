"""
Primary flux of atmospheric muons at sea level.

Guan et al. parameterization (https://arxiv.org/abs/1509.06176), combining
Gaisser's flux model with Volkova's correction of the zenith angle for the
Earth curvature.

The kernels are compiled without fastmath so that the floating point
evaluation order of the closed form is kept.

References:
    - Gaisser, Cosmic Rays and Particle Physics (1990), see also the PDG
    - Volkova et al., Sov. J. Nucl. Phys. 29, 645 (1979)
    - Guan et al., arXiv:1509.06176 (2015)
"""

import numba
import numpy as np
from scipy import integrate


# Muon rest mass [GeV/c^2]
MUON_MASS = 0.10566


@numba.njit(cache=True)
def flux_gaisser(cos_theta: float, Emu: float) -> float:
    """
    Gaisser's flux model.

    Parameters:
        cos_theta: Cosine of the zenith angle
        Emu: Total muon energy [GeV]

    Returns:
        Differential flux [GeV^-1 m^-2 s^-1 sr^-1]
    """
    ec = 1.1 * Emu * cos_theta
    rpi = 1.0 + ec / 115.0
    rK = 1.0 + ec / 850.0
    return 1.4E+03 * Emu ** -2.7 * (1.0 / rpi + 0.054 / rK)


@numba.njit(cache=True)
def cos_theta_star(cos_theta: float) -> float:
    """Volkova's parameterization of cos(theta*)."""
    p0 = 0.102573
    p1 = -0.068287
    p2 = 0.958633
    p3 = 0.0407253
    p4 = 0.817285
    cs2 = (cos_theta * cos_theta + p0 * p0 + p1 * cos_theta ** p2 +
           p3 * cos_theta ** p4) / (1.0 + p0 * p0 + p1 + p3)
    return np.sqrt(cs2) if cs2 > 0.0 else 0.0


@numba.njit(cache=True)
def flux_gccly(cos_theta: float, kinetic_energy: float) -> float:
    """
    Guan et al. sea level flux of atmospheric muons.

    Parameters:
        cos_theta: Cosine of the zenith angle of the incoming muon
        kinetic_energy: Muon kinetic energy [GeV]

    Returns:
        Differential flux [GeV^-1 m^-2 s^-1 sr^-1], 0 for cos(theta*) <= 0
    """
    Emu = kinetic_energy + MUON_MASS
    cs = cos_theta_star(cos_theta)
    if cs <= 0.0:
        # Below the horizon, the correction factor vanishes
        return 0.0
    return (1.0 + 3.64 / (Emu * cs ** 1.29)) ** -2.7 * flux_gaisser(cs, Emu)


def integrated_flux(cos_theta: float, kinetic_min: float,
                    kinetic_max: float) -> float:
    """
    Sea level flux integrated over a kinetic energy range.

    Serves as a reference for a vanishing overburden. A point value is
    returned when both bounds are equal.

    Parameters:
        cos_theta: Cosine of the zenith angle
        kinetic_min: Lower kinetic energy [GeV]
        kinetic_max: Upper kinetic energy [GeV]

    Returns:
        Flux [m^-2 s^-1 sr^-1], or [GeV^-1 m^-2 s^-1 sr^-1] for a point value
    """
    if kinetic_max == kinetic_min:
        return flux_gccly(cos_theta, kinetic_min)

    # Integrate in log(k) for a power law spectrum
    def integrand(log_k):
        k = np.exp(log_k)
        return k * flux_gccly(cos_theta, k)

    value, _ = integrate.quad(integrand, np.log(kinetic_min), np.log(kinetic_max),
                              limit=200)
    return value
