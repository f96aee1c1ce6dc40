"""Run configuration for backward muon flux simulations."""

from dataclasses import dataclass, fields, asdict
from pathlib import Path
from typing import Optional

import numpy as np
import yaml

from muon_mc.core.geometry import PRIMARY_ALTITUDE, DEFAULT_STEP
from muon_mc.errors import ConfigError


# Ratio between the stepping loop energy threshold and kinetic_max
THRESHOLD_FACTOR = 1.0E+03

DEFAULT_DUMP_FILE = 'materials/dump.h5'


@dataclass
class RunConfig:
    """
    Configuration of a flux estimate.

    Attributes:
        rock_thickness: Rock layer thickness above the detector [m]
        elevation: Elevation angle of the observation direction [deg]
        kinetic_min: Lower bound of the kinetic energy range [GeV]
        kinetic_max: Upper bound [GeV], None or equal to kinetic_min for a
            point estimate
        n_events: Number of Monte Carlo trajectories
        seed: Random seed for reproducibility (None for random)
        primary_altitude: Altitude where the primary flux is sampled [m]
        default_step: Geometry step for nearly horizontal directions [m]
        n_processes: Number of worker processes
        dump_file: Path to the material dump (HDF5)
        log_file: Optional log file
        states_file: Optional HDF5 output for the states reaching the
            primary altitude
    """
    rock_thickness: float
    elevation: float
    kinetic_min: float
    kinetic_max: Optional[float] = None
    n_events: int = 10000
    seed: Optional[int] = None
    primary_altitude: float = PRIMARY_ALTITUDE
    default_step: float = DEFAULT_STEP
    n_processes: int = 1
    dump_file: str = DEFAULT_DUMP_FILE
    log_file: Optional[str] = None
    states_file: Optional[str] = None

    def __post_init__(self):
        if self.kinetic_max is None:
            self.kinetic_max = self.kinetic_min
        self._validate()

    def _validate(self) -> None:
        """Validate configuration parameters."""
        if not 0.0 <= self.rock_thickness <= self.primary_altitude:
            raise ConfigError(
                f"rock thickness must be within [0, {self.primary_altitude:g}] m, "
                f"got {self.rock_thickness:g}")

        if not np.isfinite(self.elevation):
            raise ConfigError(f"elevation must be finite, got {self.elevation}")

        if self.kinetic_min <= 0.0:
            raise ConfigError(f"kinetic_min must be positive, got {self.kinetic_min:g}")

        if self.kinetic_max < self.kinetic_min:
            raise ConfigError(
                f"kinetic_max ({self.kinetic_max:g}) must not be lower than "
                f"kinetic_min ({self.kinetic_min:g})")

        if self.n_events <= 0:
            raise ConfigError(f"n_events must be positive, got {self.n_events}")

        if self.default_step <= 0.0:
            raise ConfigError(f"default_step must be positive, got {self.default_step:g}")

        if self.n_processes <= 0:
            raise ConfigError(f"n_processes must be positive, got {self.n_processes}")

    @property
    def cos_theta(self) -> float:
        """Cosine of the zenith angle."""
        return float(np.cos((90.0 - self.elevation) / 180.0 * np.pi))

    @property
    def sin_theta(self) -> float:
        """Sine of the zenith angle."""
        cos_theta = self.cos_theta
        return float(np.sqrt(1.0 - cos_theta * cos_theta))

    @property
    def log_ratio(self) -> float:
        """Logarithm of kinetic_max / kinetic_min, zero for a point estimate."""
        return float(np.log(self.kinetic_max / self.kinetic_min))

    @property
    def is_point_estimate(self) -> bool:
        return self.log_ratio == 0.0

    @property
    def kinetic_threshold(self) -> float:
        """Energy at which a backward trajectory is abandoned [GeV]."""
        return self.kinetic_max * THRESHOLD_FACTOR

    @classmethod
    def from_yaml(cls, yaml_path: str, **overrides) -> 'RunConfig':
        """
        Load configuration from a YAML file.

        Parameters:
            yaml_path: Path to YAML configuration file
            overrides: Values taking precedence over the file content

        Returns:
            RunConfig instance
        """
        try:
            with open(yaml_path, 'r') as f:
                config_dict = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigError(f"{yaml_path}: {e.strerror}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"{yaml_path}: invalid YAML ({e})") from e

        if not isinstance(config_dict, dict):
            raise ConfigError(f"{yaml_path}: expected a mapping")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(config_dict) - known)
        if unknown:
            raise ConfigError(f"{yaml_path}: unknown key(s) {', '.join(unknown)}")

        config_dict.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return cls(**config_dict)
        except TypeError as e:
            raise ConfigError(f"{yaml_path}: {e}") from e

    def to_yaml(self, yaml_path: str) -> None:
        """Save configuration to a YAML file."""
        Path(yaml_path).parent.mkdir(parents=True, exist_ok=True)
        with open(yaml_path, 'w') as f:
            yaml.safe_dump(asdict(self), f, default_flow_style=False)
