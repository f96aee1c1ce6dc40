#!/usr/bin/env python3
"""
Quick check of the installation.

Run this after setting up the environment to check everything works.
"""

import sys
import time
from pathlib import Path

print("=" * 70)
print("MUON_MC Installation Check")
print("=" * 70)

# 1: Third party packages
print("\n1. Checking imports...")
for module in ("numpy", "scipy", "numba", "h5py", "yaml", "tqdm", "matplotlib"):
    try:
        imported = __import__(module)
        print(f"   ✓ {module}: {getattr(imported, '__version__', '?')}")
    except ImportError as e:
        print(f"   ✗ {module} failed: {e}")
        sys.exit(1)

# 2: muon_mc
print("\n2. Checking muon_mc imports...")
try:
    from muon_mc.core.config import RunConfig, DEFAULT_DUMP_FILE
    from muon_mc.physics.flux import flux_gccly
    from muon_mc.physics.materials import MaterialTable
    from muon_mc.transport.integrator import FluxIntegrator
    print("   ✓ muon_mc imported")
except ImportError as e:
    print(f"   ✗ Failed: {e}")
    sys.exit(1)

# 3: Material dump
print("\n3. Checking the material dump...")
dump_file = Path(DEFAULT_DUMP_FILE)
if dump_file.exists():
    table = MaterialTable.load(dump_file)
    print(f"   ✓ Found: {dump_file} ({', '.join(table.names)})")
else:
    table = MaterialTable()
    print(f"   ✗ Missing: {dump_file}")
    print(f"   Run: python scripts/generate_material_dump.py")

# 4: Numba compilation of the flux model
print("\n4. Checking Numba JIT compilation...")
start = time.time()
value = flux_gccly(1.0, 10.0)
print(f"   ✓ Vertical flux @ 10 GeV: {value:.4E} GeV^-1 m^-2 s^-1 sr^-1 "
      f"({(time.time() - start) * 1000:.0f} ms including compilation)")

# 5: Small simulation
print("\n5. Running a point estimate...")
config = RunConfig(rock_thickness=0.0, elevation=90.0, kinetic_min=10.0,
                   n_events=100, seed=1)
start = time.time()
result = FluxIntegrator(config, materials=table).run()
print(f"   ✓ {result.format()} ({time.time() - start:.2f} s)")

print("\n" + "=" * 70)
print("Installation check complete!")
print("=" * 70)
