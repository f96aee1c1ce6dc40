"""
Muon energy loss tables.

Continuous energy loss of high energy muons is parameterized as

    dE/dX = a + b * E

with X the column depth [kg/m^2], a the ionisation loss and b the sum of
the radiative (bremsstrahlung, pair production, photonuclear) loss
coefficients. Tables are persisted as an HDF5 dump, one group per material.

References:
    - Groom, Mokhov, Striganov, Atomic Data and Nuclear Data Tables 78 (2001)
    - PDG Review of Particle Physics (Passage of particles through matter)
"""

from pathlib import Path
from typing import Dict, List, Optional

import h5py
import numba
import numpy as np

from muon_mc.errors import ConfigError, EngineError
from muon_mc.utils.logging import get_logger


logger = get_logger(__name__)

DUMP_FORMAT = 'muon_mc/materials'
DUMP_VERSION = 1

# Default material properties (SI units)
MATERIAL_PROPERTIES = {
    'StandardRock': {
        'a': 2.17E-04,        # GeV m^2/kg
        'b': 4.0E-07,         # m^2/kg
        'X0': 265.4,          # Radiation length [kg/m^2]
    },
    'Air': {
        'a': 2.45E-04,
        'b': 3.2E-07,
        'X0': 366.2,
    },
}


@numba.njit(cache=True)
def csda_kinetic(kinetic: float, a: float, b: float, grammage: float,
                 backward: bool) -> float:
    """
    Kinetic energy after a column depth, in the continuous slowing down
    approximation.

    Parameters:
        kinetic: Initial kinetic energy [GeV]
        a: Ionisation loss [GeV m^2/kg]
        b: Radiative loss [m^2/kg]
        grammage: Column depth [kg/m^2]
        backward: Energy increases if True

    Returns:
        Final kinetic energy [GeV], floored at 0
    """
    e0 = a / b
    if backward:
        return (kinetic + e0) * np.exp(b * grammage) - e0
    final = (kinetic + e0) * np.exp(-b * grammage) - e0
    return final if final > 0.0 else 0.0


@numba.njit(cache=True)
def csda_grammage(kinetic_i: float, kinetic_f: float, a: float, b: float) -> float:
    """Column depth [kg/m^2] between two kinetic energies, in either order."""
    e0 = a / b
    return abs(np.log((kinetic_f + e0) / (kinetic_i + e0))) / b


class MaterialTable:
    """
    Indexed energy loss properties of materials.

    Usage:
        table = MaterialTable.load('materials/dump.h5')
        index = table.index('StandardRock')
        dedx = table.energy_loss(index, 10.0)
    """

    def __init__(self, properties: Optional[Dict[str, dict]] = None):
        """
        Initialize the table.

        Parameters:
            properties: Mapping of material name to {'a', 'b', 'X0'}
                (default materials if None)
        """
        if properties is None:
            properties = MATERIAL_PROPERTIES

        self._names: List[str] = []
        self._a = []
        self._b = []
        self._X0 = []
        for name, props in properties.items():
            try:
                a, b, X0 = float(props['a']), float(props['b']), float(props['X0'])
            except (KeyError, TypeError, ValueError) as e:
                raise EngineError(f"invalid properties for material `{name}`") from e
            if a <= 0.0 or b <= 0.0 or X0 <= 0.0:
                raise EngineError(f"non positive energy loss parameter for material `{name}`")
            self._names.append(name)
            self._a.append(a)
            self._b.append(b)
            self._X0.append(X0)

        self._a = np.array(self._a)
        self._b = np.array(self._b)
        self._X0 = np.array(self._X0)

    def __len__(self) -> int:
        return len(self._names)

    @property
    def names(self) -> List[str]:
        return list(self._names)

    def index(self, name: str) -> int:
        """Get the index of a material from its name."""
        try:
            return self._names.index(name)
        except ValueError:
            raise EngineError(
                f"unknown material `{name}`. Available: {self._names}") from None

    def name(self, index: int) -> str:
        """Get the name of a material from its index."""
        if not 0 <= index < len(self._names):
            raise EngineError(f"material index {index} out of range")
        return self._names[index]

    def coefficients(self, index: int):
        """Get the (a, b) energy loss coefficients of a material."""
        return float(self._a[index]), float(self._b[index])

    def radiation_length(self, index: int) -> float:
        """Get the radiation length [kg/m^2]."""
        return float(self._X0[index])

    def energy_loss(self, index: int, kinetic: float) -> float:
        """Get the stopping power dE/dX [GeV m^2/kg]."""
        return float(self._a[index] + self._b[index] * kinetic)

    def dump(self, path) -> None:
        """
        Write the table to an HDF5 dump.

        Parameters:
            path: Output file path; parent directories are created
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with h5py.File(path, 'w') as f:
            f.attrs['format'] = DUMP_FORMAT
            f.attrs['version'] = DUMP_VERSION
            for i, name in enumerate(self._names):
                group = f.create_group(name)
                group.attrs['index'] = i
                group.attrs['a'] = self._a[i]
                group.attrs['b'] = self._b[i]
                group.attrs['X0'] = self._X0[i]
        logger.debug("Dumped %d materials to %s", len(self), path)

    @classmethod
    def load(cls, path) -> 'MaterialTable':
        """
        Load a table from an HDF5 dump.

        Raises:
            ConfigError: if the file is missing or unreadable
            EngineError: if the file content is not a material dump
        """
        path = Path(path)
        if not path.is_file():
            raise ConfigError(f"{path}: no such file")

        try:
            f = h5py.File(path, 'r')
        except OSError as e:
            raise ConfigError(f"{path}: cannot read material dump ({e})") from e

        with f:
            if f.attrs.get('format') != DUMP_FORMAT:
                raise EngineError(f"{path}: not a material dump")
            if int(f.attrs.get('version', -1)) != DUMP_VERSION:
                raise EngineError(f"{path}: unsupported dump version")

            entries = []
            for name, group in f.items():
                try:
                    entries.append((int(group.attrs['index']), name, {
                        'a': group.attrs['a'],
                        'b': group.attrs['b'],
                        'X0': group.attrs['X0'],
                    }))
                except KeyError as e:
                    raise EngineError(f"{path}: corrupted entry for `{name}`") from e

        entries.sort()
        table = cls({name: props for _, name, props in entries})
        logger.debug("Loaded %d materials from %s", len(table), path)
        return table
