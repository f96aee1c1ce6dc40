"""Transport module: engine, scheme selection, biased sampling and flux integration."""

from muon_mc.transport.context import Event, Scheme, TransportContext
from muon_mc.transport.engine import TransportEngine
from muon_mc.transport.integrator import FluxIntegrator, FluxAccumulator, FluxResult

__all__ = ["Event", "Scheme", "TransportContext", "TransportEngine",
           "FluxIntegrator", "FluxAccumulator", "FluxResult"]
