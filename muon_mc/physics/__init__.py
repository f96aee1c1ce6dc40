"""Physics module: primary flux, energy loss tables, scattering."""

from muon_mc.physics.flux import flux_gccly, flux_gaisser, cos_theta_star, integrated_flux
from muon_mc.physics.materials import MaterialTable

__all__ = ["flux_gccly", "flux_gaisser", "cos_theta_star", "integrated_flux",
           "MaterialTable"]
