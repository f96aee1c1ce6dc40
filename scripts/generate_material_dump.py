"""
Generate the material dump read by the muon flux simulation.

Writes the default energy loss tables (StandardRock, Air) to an HDF5 file,
by default materials/dump.h5 relative to the current directory.

Usage:
    python scripts/generate_material_dump.py [OUTPUT]
"""

import sys
from pathlib import Path

# Add parent directory to path to import muon_mc
sys.path.insert(0, str(Path(__file__).parent.parent))

from muon_mc.core.config import DEFAULT_DUMP_FILE
from muon_mc.physics.materials import MaterialTable


def generate_dump(output=DEFAULT_DUMP_FILE):
    """Write the default material table and read it back."""
    table = MaterialTable()
    table.dump(output)

    loaded = MaterialTable.load(output)
    print(f"Wrote {len(loaded)} materials to {output}")
    for index in range(len(loaded)):
        a, b = loaded.coefficients(index)
        print(f"  {loaded.name(index):12s}: a = {a:.3E} GeV m^2/kg, b = {b:.3E} m^2/kg, "
              f"X0 = {loaded.radiation_length(index):.1f} kg/m^2")


if __name__ == "__main__":
    generate_dump(sys.argv[1] if len(sys.argv) > 1 else DEFAULT_DUMP_FILE)
