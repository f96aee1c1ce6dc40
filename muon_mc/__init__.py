"""
MUON_MC: backward Monte Carlo of atmospheric muon fluxes

Estimates the flux of atmospheric muons below a flat rock layer by
transporting muons backward, from the detector up to the primary altitude,
and weighting them with a sea level flux model.

Modules:
    core: Muon state, layered geometry, run configuration
    physics: Primary flux model, energy loss tables, scattering
    transport: Transport engine, scheme selector, biased sampler, integrator
    utils: Logging
"""

__version__ = "0.1.0"

from muon_mc.errors import MuonMCError, ConfigError, EngineError, LogicError
from muon_mc.core.config import RunConfig
from muon_mc.core.geometry import LayeredGeometry
from muon_mc.core.state import ParticleState
from muon_mc.physics.materials import MaterialTable
from muon_mc.transport.engine import TransportEngine
from muon_mc.transport.integrator import FluxIntegrator, FluxResult

__all__ = [
    "MuonMCError",
    "ConfigError",
    "EngineError",
    "LogicError",
    "RunConfig",
    "LayeredGeometry",
    "ParticleState",
    "MaterialTable",
    "TransportEngine",
    "FluxIntegrator",
    "FluxResult",
]
