#!/usr/bin/env python3
"""
List the shot template catalog with derived camera parameters.

Usage:
    python cli/list_shots.py
    python cli/list_shots.py --core
    python cli/list_shots.py --lens 85 --crop cu
    python cli/list_shots.py --json
"""

import argparse
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from character_library.core import Crop, ShotFilter, default_catalog
from character_library.core.cinematic_calculator import resolve_shot_parameters


def main():
    parser = argparse.ArgumentParser(description="List reference shot templates")
    parser.add_argument("--core", action="store_true", help="Only the core set (priority 1)")
    parser.add_argument("--lens", type=int, choices=[35, 50, 85], help="Filter by focal length")
    parser.add_argument("--crop", type=Crop, choices=list(Crop), help="Filter by crop")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of a table")
    args = parser.parse_args()

    catalog = default_catalog()
    shots = catalog.list_templates(
        ShotFilter(
            lens_mm=args.lens,
            crop=args.crop,
            max_priority=1 if args.core else None,
        )
    )

    if args.json:
        data = []
        for shot in shots:
            entry = shot.to_dict()
            entry["parameters"] = resolve_shot_parameters(shot).to_dict()
            data.append(entry)
        print(json.dumps(data, indent=2))
        return

    print(f"{'ID':<28} {'LENS':>5} {'ANGLE':<16} {'CROP':<5} {'AZ':>6} {'EL':>5} {'DIST':>5} {'F':>5}  PRI")
    for shot in shots:
        params = resolve_shot_parameters(shot)
        print(
            f"{shot.id:<28} {shot.lens_mm:>4}mm {shot.angle.value:<16} {shot.crop.value:<5} "
            f"{params.camera.azimuth_deg:>6g} {params.camera.elevation_deg:>5g} "
            f"{params.camera.distance_m:>5g} {params.technical.f_stop:>5g}  {shot.priority}"
        )
    print(f"\n{len(shots)} shot(s)")


if __name__ == "__main__":
    main()
