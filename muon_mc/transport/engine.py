"""
Reference transport engine for muons.

Integrates:
    - Continuous energy loss (exact CSDA over a step of uniform density)
    - Multiple Coulomb scattering and geomagnetic bending (detailed scheme)
    - Geometry boundaries and local property step caps
    - Kinetic limit and medium change stop conditions
    - Backward Monte Carlo weights (CSDA Jacobian)

One call to `TransportEngine.transport` runs one leg: the muon is stepped
until it leaves the simulation area, changes layer (when the MEDIUM event
is enabled) or reaches the context kinetic limit (when LIMIT_KINETIC is
enabled). Stochastic energy losses are not simulated.
"""

from typing import Dict, Optional, Tuple

import numba
import numpy as np

from muon_mc.core.state import ParticleState
from muon_mc.errors import EngineError
from muon_mc.physics.materials import MaterialTable, csda_kinetic, csda_grammage
from muon_mc.physics.scattering import highland_angle, scatter, magnetic_deflection
from muon_mc.transport.context import Event, Scheme, TransportContext


# Extra length added to boundary limited steps so that the crossing is resolved [m]
BOUNDARY_NUDGE = 1.0E-06

# Smallest step taken by the energy loss control [m]
MIN_STEP = 1.0E-06


@numba.njit(cache=True)
def calculate_step_size(kinetic: float, a: float, b: float, density: float,
                        max_energy_loss_fraction: float) -> float:
    """
    Step length limiting the relative energy change over a step.

    Ensures:
        ΔE / E < max_energy_loss_fraction

    Parameters:
        kinetic: Kinetic energy [GeV]
        a: Ionisation loss [GeV m^2/kg]
        b: Radiative loss [m^2/kg]
        density: Local density [kg/m^3]
        max_energy_loss_fraction: Maximum fractional energy change per step

    Returns:
        Step size [m]
    """
    dEdx = (a + b * kinetic) * density
    step = max_energy_loss_fraction * kinetic / dEdx
    return max(step, MIN_STEP)


class TransportEngine:
    """
    Leg by leg muon transport through a layered geometry.

    Example:
        engine = TransportEngine()
        context = TransportContext.create(geometry, seed=0, forward=False)
        event, media = engine.transport(context, state)
    """

    def __init__(self, materials: Optional[MaterialTable] = None,
                 max_energy_loss_fraction: float = 0.05,
                 max_steps: int = 100000):
        """
        Initialize transport engine.

        Parameters:
            materials: Energy loss tables (default materials if None)
            max_energy_loss_fraction: Max ΔE/E per step in the detailed scheme
            max_steps: Maximum number of steps in a single leg
        """
        if max_energy_loss_fraction <= 0.0:
            raise EngineError("max_energy_loss_fraction must be positive")

        self.materials = materials if materials is not None else MaterialTable()
        self.max_energy_loss_fraction = max_energy_loss_fraction
        self.max_steps = max_steps
        self._indices: Dict[str, int] = {}

    def material_index(self, layer) -> int:
        """Map the material of a layer to its table index."""
        index = self._indices.get(layer.material)
        if index is None:
            index = self.materials.index(layer.material)
            self._indices[layer.material] = index
        return index

    def transport(self, context: TransportContext,
                  state: ParticleState) -> Tuple[Event, tuple]:
        """
        Transport a muon over one leg.

        Parameters:
            context: Transport configuration for this leg
            state: Muon state, updated in place

        Returns:
            (event, media): the stop reason and the (start, end) layers,
            end is None when the muon left the simulation area
        """
        backward = not context.forward
        limit_enabled = bool(context.event & Event.LIMIT_KINETIC)
        medium_enabled = bool(context.event & Event.MEDIUM)
        detailed = context.scheme is Scheme.DETAILED

        start, step_geometry = context.medium(state)
        if start is None:
            return Event.MEDIUM, (None, None)

        if limit_enabled:
            if backward and state.kinetic >= context.kinetic_limit:
                return Event.LIMIT_KINETIC, (start, start)
            if not backward and state.kinetic <= context.kinetic_limit:
                return Event.LIMIT_KINETIC, (start, start)

        current = start
        for _ in range(self.max_steps):
            properties, step_locals = current.provide_local_properties(state)
            density = properties.density
            if not density > 0.0:
                raise EngineError(f"non positive density ({density}) in layer `{current.name}`")

            index = self.material_index(current)
            a, b = self.materials.coefficients(index)

            # Shortest of the geometry, local properties and energy loss caps
            step = step_geometry
            boundary = True
            if 0.0 < step_locals < step:
                step, boundary = step_locals, False
            if detailed:
                step_energy = calculate_step_size(
                    state.kinetic, a, b, density, self.max_energy_loss_fraction)
                if step_energy < step:
                    step, boundary = step_energy, False
            if not np.isfinite(step) or step < 0.0:
                raise EngineError(f"invalid step length ({step}) in layer `{current.name}`")
            if boundary:
                step += BOUNDARY_NUDGE

            grammage = density * step
            kinetic = csda_kinetic(state.kinetic, a, b, grammage, backward)

            event = Event.NONE
            if limit_enabled and ((backward and kinetic >= context.kinetic_limit) or
                                  (not backward and kinetic <= context.kinetic_limit)):
                grammage = csda_grammage(state.kinetic, context.kinetic_limit, a, b)
                step = grammage / density
                kinetic = context.kinetic_limit
                event = Event.LIMIT_KINETIC
            elif kinetic <= 0.0:
                # Forward muon ranging out
                event = Event.LIMIT_KINETIC

            # Move opposite to the momentum when going back in time
            if backward:
                state.position -= step * state.direction
            else:
                state.position += step * state.direction
            state.distance += step

            if not context.longitudinal:
                theta_rms = highland_angle(state.kinetic, state.charge, grammage,
                                           self.materials.radiation_length(index))
                direction = scatter(state.direction, theta_rms, context.random)
                if properties.magnet is not None:
                    direction = magnetic_deflection(direction, properties.magnet,
                                                    state.charge, state.kinetic,
                                                    step, backward)
                state.direction = direction
            if backward:
                # Jacobian of the backward CSDA mapping, dE_i / dE_f
                state.weight *= (self.materials.energy_loss(index, kinetic) /
                                 self.materials.energy_loss(index, state.kinetic))
            state.kinetic = kinetic

            layer, step_geometry = context.medium(state)
            if layer is None:
                return Event.MEDIUM, (start, None)
            if event:
                return event, (start, current)
            if layer is not current:
                if medium_enabled:
                    return Event.MEDIUM, (start, layer)
                current = layer

        raise EngineError(f"transport leg exceeded {self.max_steps} steps")
