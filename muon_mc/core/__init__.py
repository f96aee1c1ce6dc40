"""Core module: muon state, layered geometry and run configuration."""

from muon_mc.core.state import ParticleState
from muon_mc.core.geometry import (
    LayeredGeometry, Layer, UniformLayer, ExponentialLayer, LocalProperties)
from muon_mc.core.config import RunConfig

__all__ = ["ParticleState", "LayeredGeometry", "Layer", "UniformLayer",
           "ExponentialLayer", "LocalProperties", "RunConfig"]
