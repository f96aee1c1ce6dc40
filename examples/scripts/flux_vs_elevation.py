"""
Muon Flux vs Elevation - Simple Example

Estimates the integrated flux of atmospheric muons below a rock layer for
several elevation angles and compares it to the open sky flux at sea level.

This example illustrates:
    - Backward transport through rock and air
    - Biased sampling of the final kinetic energy
    - The attenuation of the flux by the rock overburden
"""

import numpy as np
import matplotlib.pyplot as plt
from pathlib import Path
import sys

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from muon_mc.core.config import RunConfig
from muon_mc.physics.flux import integrated_flux
from muon_mc.transport.integrator import FluxIntegrator


def scan_elevation(rock_thickness: float, elevations, kinetic_min: float = 1.0,
                   kinetic_max: float = 1.0E+03, n_events: int = 2000,
                   seed: int = 2024):
    """
    Estimate the flux for a set of elevation angles.

    Parameters:
        rock_thickness: Rock thickness above the detector [m]
        elevations: Elevation angles [deg]
        kinetic_min: Lower kinetic energy [GeV]
        kinetic_max: Upper kinetic energy [GeV]
        n_events: Number of Monte Carlo events per angle
        seed: Random seed

    Returns:
        flux, sigma, reference: Arrays [m^-2 s^-1 sr^-1]
    """
    print(f"\n{'='*70}")
    print(f"Muon Flux Scan")
    print(f"{'='*70}")
    print(f"  Rock thickness: {rock_thickness} m")
    print(f"  Kinetic range: [{kinetic_min}, {kinetic_max}] GeV")
    print(f"  Events per angle: {n_events:,}")
    print(f"{'='*70}\n")

    flux, sigma, reference = [], [], []
    for elevation in elevations:
        config = RunConfig(rock_thickness=rock_thickness, elevation=elevation,
                           kinetic_min=kinetic_min, kinetic_max=kinetic_max,
                           n_events=n_events, seed=seed)
        result = FluxIntegrator(config).run()
        flux.append(result.flux)
        sigma.append(result.sigma)
        reference.append(integrated_flux(config.cos_theta, kinetic_min, kinetic_max))
        print(f"  {elevation:5.1f} deg: {result.format()}")

    return np.array(flux), np.array(sigma), np.array(reference)


def plot_scan(elevations, flux, sigma, reference, rock_thickness, save_path=None):
    """Plot the estimated flux and the open sky reference."""
    plt.figure(figsize=(10, 6))

    plt.errorbar(elevations, flux, yerr=sigma, fmt='bo', markersize=6,
                 capsize=3, label=f'Monte Carlo ({rock_thickness:g} m rock)')
    plt.plot(elevations, reference, 'k--', linewidth=1.5, alpha=0.7,
             label='Open sky (sea level)')

    plt.yscale('log')
    plt.xlabel('Elevation [deg]', fontsize=14, fontweight='bold')
    plt.ylabel(r'Flux [m$^{-2}$ s$^{-1}$ sr$^{-1}$]', fontsize=14, fontweight='bold')
    plt.title('Atmospheric Muon Flux', fontsize=16, fontweight='bold')
    plt.grid(True, alpha=0.3, linestyle='--')
    plt.legend(fontsize=12)
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')
        print(f"Figure saved: {save_path}")

    return plt.gcf()


if __name__ == "__main__":
    rock_thickness = 20.0
    elevations = np.array([10.0, 30.0, 50.0, 70.0, 90.0])

    flux, sigma, reference = scan_elevation(rock_thickness, elevations)

    save_path = Path(__file__).parent / 'flux_vs_elevation.png'
    plot_scan(elevations, flux, sigma, reference, rock_thickness, save_path)

    print(f"\nTransmission (MC / open sky):")
    for elevation, ratio in zip(elevations, flux / reference):
        print(f"  {elevation:5.1f} deg: {ratio:.3f}")
