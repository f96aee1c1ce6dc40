"""
Backward Monte Carlo estimate of the atmospheric muon flux.

Each trajectory starts at the detector with a final state kinetic energy
drawn by the biased sampler. It is transported backward, leg by leg, with
the scheme selected from its current energy, until it either leaves the
simulation area or its energy exceeds a threshold far above kinetic_max.
Trajectories leaving through the top boundary contribute their weight
times the primary flux; others contribute zero.

Any transport event other than a medium change or a kinetic limit aborts
the whole run.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import h5py
import numpy as np
from tqdm import tqdm

from muon_mc.core.config import RunConfig
from muon_mc.core.geometry import FLT_EPSILON, LayeredGeometry
from muon_mc.core.state import STATE_DTYPE, ParticleState
from muon_mc.errors import EngineError, LogicError
from muon_mc.physics.flux import flux_gccly
from muon_mc.physics.materials import MaterialTable
from muon_mc.transport.context import Event, TransportContext
from muon_mc.transport.engine import TransportEngine
from muon_mc.transport.sampler import sample_final_state
from muon_mc.transport.scheme import apply_scheme
from muon_mc.utils.logging import get_logger


logger = get_logger(__name__)

POINT_UNIT = 'GeV^{-1} m^{-2} s^{-2} sr^{-1}'
INTEGRAL_UNIT = 'm^{-2} s^{-2} sr^{-1}'

STATES_FORMAT = 'muon_mc/states'


@dataclass
class FluxAccumulator:
    """Running sums of the weighted flux contributions."""
    w: float = 0.0
    w2: float = 0.0
    n: int = 0

    def add(self, value: float = 0.0) -> None:
        """Record one completed trajectory with its contribution."""
        self.w += value
        self.w2 += value * value
        self.n += 1

    def merge(self, other: 'FluxAccumulator') -> 'FluxAccumulator':
        """Combine with the sums of another batch of trajectories."""
        return FluxAccumulator(self.w + other.w, self.w2 + other.w2,
                               self.n + other.n)

    @property
    def mean(self) -> float:
        return self.w / self.n if self.n else 0.0

    def sigma(self, zero_variance: bool = False) -> float:
        """
        Standard error on the mean.

        Parameters:
            zero_variance: Report 0, e.g. when there is no rock
        """
        if zero_variance or not self.n:
            return 0.0
        mean = self.mean
        variance = (self.w2 / self.n - mean * mean) / self.n
        return float(np.sqrt(variance)) if variance > 0.0 else 0.0


@dataclass
class LayerStatistics:
    """Path length travelled in each layer, summed over trajectories [m]."""
    distance: Dict[str, float] = field(default_factory=dict)

    def add(self, layer, length: float) -> None:
        if layer is not None:
            self.distance[layer.material] = self.distance.get(layer.material, 0.0) + length

    def merge(self, other: 'LayerStatistics') -> 'LayerStatistics':
        merged = dict(self.distance)
        for material, length in other.distance.items():
            merged[material] = merged.get(material, 0.0) + length
        return LayerStatistics(merged)


@dataclass
class FluxResult:
    """Outcome of a flux estimate."""
    flux: float
    sigma: float
    n_events: int
    n_exits: int
    point_estimate: bool
    layer_distance: Dict[str, float] = field(default_factory=dict)

    @property
    def unit(self) -> str:
        return POINT_UNIT if self.point_estimate else INTEGRAL_UNIT

    def format(self) -> str:
        """One line summary, as printed by the command line."""
        return f"Flux : {self.flux:.5E} \\pm {self.sigma:.5E} {self.unit}"

    def __str__(self) -> str:
        return self.format()


class FluxIntegrator:
    """
    Driver of the backward flux estimate.

    Example:
        config = RunConfig(rock_thickness=100.0, elevation=60.0,
                           kinetic_min=1.0, kinetic_max=1e3, seed=1)
        result = FluxIntegrator(config).run()
        print(result.format())
    """

    def __init__(self, config: RunConfig, engine: Optional[TransportEngine] = None,
                 geometry: Optional[LayeredGeometry] = None,
                 materials: Optional[MaterialTable] = None):
        """
        Initialize the integrator.

        Parameters:
            config: Run configuration
            engine: Transport engine (reference engine if None)
            geometry: Layered geometry (built from config if None)
            materials: Material tables for the default engine
        """
        self.config = config
        self.geometry = geometry if geometry is not None else LayeredGeometry(
            config.rock_thickness, config.primary_altitude, config.default_step)
        self.engine = engine if engine is not None else TransportEngine(materials)

        # Check the material mapping once, before any trajectory
        if isinstance(self.engine, TransportEngine):
            for layer in self.geometry.layers:
                self.engine.material_index(layer)

    def create_context(self, seed=None) -> TransportContext:
        """Create a backward transport context with its own generator."""
        return TransportContext.create(
            self.geometry, seed=seed, forward=False,
            event=Event.LIMIT_KINETIC | Event.MEDIUM)

    def initial_state(self, context: TransportContext) -> ParticleState:
        """Sample the final state of a muon at the detector."""
        config = self.config
        kinetic, weight = sample_final_state(
            config.kinetic_min, config.kinetic_max, context.uniform01())
        return ParticleState(charge=-1.0, kinetic=kinetic, weight=weight,
                             direction=(-config.sin_theta, 0.0, -config.cos_theta))

    def transport_trajectory(self, context: TransportContext,
                             accumulator: FluxAccumulator,
                             statistics: Optional[LayerStatistics] = None,
                             states: Optional[List[np.ndarray]] = None) -> bool:
        """
        Transport one muon backward and record its contribution.

        Parameters:
            context: Backward transport context
            accumulator: Flux sums, updated for every trajectory
            statistics: Optional per layer path length tallies
            states: Optional list collecting the states at the top boundary

        Returns:
            True if the muon left through the top boundary
        """
        state = self.initial_state(context)
        threshold = self.config.kinetic_threshold

        while state.kinetic < threshold - FLT_EPSILON:
            apply_scheme(context, state.kinetic, threshold)

            distance0 = state.distance
            try:
                event, media = self.engine.transport(context, state)
            except (ArithmeticError, ValueError) as e:
                raise EngineError(f"transport failed: {e}") from e

            if statistics is not None:
                statistics.add(media[0], state.distance - distance0)

            if event == Event.MEDIUM:
                if media[1] is None:
                    if self.geometry.is_top_exit(state):
                        value = state.weight * flux_gccly(-state.direction[2], state.kinetic)
                        accumulator.add(value)
                        if states is not None:
                            states.append(state.to_structured_array())
                        return True
                    break
            elif event != Event.LIMIT_KINETIC:
                raise LogicError(event)

        accumulator.add(0.0)
        return False

    def _run_events(self, n_events: int, seed, verbose: bool = False
                    ) -> Tuple[FluxAccumulator, LayerStatistics, int, np.ndarray]:
        context = self.create_context(seed)
        accumulator = FluxAccumulator()
        statistics = LayerStatistics()
        states = [] if self.config.states_file else None
        n_exits = 0
        for _ in tqdm(range(n_events), disable=not verbose, desc='muons', unit='evt'):
            n_exits += self.transport_trajectory(context, accumulator, statistics, states)
        records = np.concatenate(states) if states else np.zeros(0, dtype=STATE_DTYPE)
        return accumulator, statistics, n_exits, records

    def _result(self, accumulator: FluxAccumulator, statistics: LayerStatistics,
                n_exits: int, records: np.ndarray) -> FluxResult:
        config = self.config
        sigma = accumulator.sigma(zero_variance=config.rock_thickness <= 0.0)
        result = FluxResult(accumulator.mean, sigma, accumulator.n, n_exits,
                            config.is_point_estimate, statistics.distance)
        logger.info("%d/%d muons reached the primary altitude", n_exits, accumulator.n)
        for material, length in sorted(result.layer_distance.items()):
            logger.debug("- %-12s : %.5E m", material, length)

        if config.states_file:
            write_final_states(config.states_file, records, config)
        return result

    def run(self, verbose: bool = False) -> FluxResult:
        """
        Run the Monte Carlo sequentially.

        Parameters:
            verbose: Show a progress bar

        Returns:
            FluxResult
        """
        config = self.config
        logger.info("Backward transport of %d muons, rock thickness %g m, elevation %g deg",
                    config.n_events, config.rock_thickness, config.elevation)
        return self._result(*self._run_events(config.n_events, config.seed, verbose))

    def run_parallel(self, n_processes: Optional[int] = None,
                     verbose: bool = False) -> FluxResult:
        """
        Run the Monte Carlo over a pool of worker processes.

        Trajectories are split in one chunk per process; each chunk gets a
        private generator stream spawned from the run seed and the chunk
        sums are added at the end.

        Parameters:
            n_processes: Number of processes (config.n_processes if None)
            verbose: Log chunk completion

        Returns:
            FluxResult
        """
        import multiprocessing as mp
        import time

        config = self.config
        if n_processes is None:
            n_processes = config.n_processes
        n_processes = max(1, min(n_processes, config.n_events))

        counts = [len(c) for c in np.array_split(np.arange(config.n_events), n_processes)]
        seeds = np.random.SeedSequence(config.seed).spawn(n_processes)
        work_items = [(self, n, s) for n, s in zip(counts, seeds)]

        logger.info("Parallel transport: %d muons on %d processes",
                    config.n_events, n_processes)
        start_time = time.time()
        with mp.Pool(n_processes) as pool:
            results = pool.map(_run_chunk, work_items)
        elapsed = time.time() - start_time

        accumulator, statistics, n_exits = FluxAccumulator(), LayerStatistics(), 0
        for chunk_accumulator, chunk_statistics, chunk_exits, _ in results:
            accumulator = accumulator.merge(chunk_accumulator)
            statistics = statistics.merge(chunk_statistics)
            n_exits += chunk_exits
        records = np.concatenate([chunk[3] for chunk in results])

        if verbose:
            logger.info("Transport complete: %.1f s, %.0f muons/s",
                        elapsed, config.n_events / elapsed if elapsed > 0 else 0.0)
        return self._result(accumulator, statistics, n_exits, records)


def write_final_states(path, records: np.ndarray, config: RunConfig) -> None:
    """
    Write the states of the muons reaching the primary altitude to HDF5.

    Parameters:
        path: Output file path; parent directories are created
        records: Structured array of STATE_DTYPE rows
        config: Run configuration, stored as attributes
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with h5py.File(path, 'w') as f:
        f.attrs['format'] = STATES_FORMAT
        f.attrs['rock_thickness'] = config.rock_thickness
        f.attrs['elevation'] = config.elevation
        f.attrs['kinetic_min'] = config.kinetic_min
        f.attrs['kinetic_max'] = config.kinetic_max
        f.attrs['n_events'] = config.n_events
        f.create_dataset('states', data=records)
    logger.info("Wrote %d final states to %s", len(records), path)


def _run_chunk(work_item):
    """Worker entry point: transport a chunk of trajectories."""
    integrator, n_events, seed = work_item
    return integrator._run_events(n_events, seed)
