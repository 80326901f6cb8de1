#!/usr/bin/env python3
"""
CLI for generating a character reference set.

Usage:
    python cli/generate_reference_set.py "Maya" master.png --traits "short curly hair, round glasses"
    python cli/generate_reference_set.py "Maya" master.png --shot 50_front_cu --shot 85_profile_left_mcu
    python cli/generate_reference_set.py "Maya" master.png --count 12 --seed 42
    python cli/generate_reference_set.py "Maya" master.png --quality-threshold 80 --strict
"""

import argparse
import asyncio
import json
import re
import shutil
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from character_library.api.logging import configure_logging
from character_library.config import GENERATION_CONSTANTS
from character_library.core import Subject, default_catalog
from character_library.core.errors import CharacterLibraryError
from character_library.core.modules import (
    FileAssetStore,
    GeminiConsistencyJudge,
    GeminiImageSynthesizer,
    GenerationOptions,
    ReferenceSetGenerator,
    add_outcome,
)
from character_library.core.prompt_builder import asset_file_name
from character_library.core.types import GenerationResult


def parse_args():
    parser = argparse.ArgumentParser(
        description="Generate cinematic reference shots of a character from a master image",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("name", type=str, help="Character name")
    parser.add_argument("master", type=Path, help="Path to the master reference image")
    parser.add_argument("--traits", type=str, default="", help="Physical description")
    parser.add_argument("--personality", type=str, default="", help="Personality notes")
    parser.add_argument(
        "--shot",
        action="append",
        dest="shot_ids",
        default=None,
        help="Shot template id to generate (repeatable). Defaults to the core set.",
    )
    parser.add_argument(
        "--count",
        type=int,
        default=None,
        help="Generate the first N catalog shots instead of the core set",
    )
    parser.add_argument(
        "--quality-threshold",
        type=float,
        default=GENERATION_CONSTANTS["quality_threshold"],
        help="Minimum quality score to accept (0-100, default: %(default)s)",
    )
    parser.add_argument(
        "--max-retries",
        type=int,
        default=GENERATION_CONSTANTS["max_retries"],
        help="Attempts per shot (default: %(default)s)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Base seed for reproducible runs")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail shots that never reach the threshold instead of keeping the best attempt",
    )
    parser.add_argument(
        "--output", "-o",
        type=Path,
        default=None,
        help="Output directory (default: output/<name>_<timestamp>)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Print log output")
    return parser.parse_args()


async def generate(args) -> int:
    catalog = default_catalog()
    if args.shot_ids:
        shots = [catalog.get_template(shot_id) for shot_id in args.shot_ids]
    elif args.count:
        shots = catalog.list_templates()[:args.count]
    else:
        shots = catalog.core_set()

    slug = re.sub(r"[^a-z0-9]+", "_", args.name.lower()).strip("_") or "character"
    output_dir = args.output or (
        Path(__file__).parent.parent / "output" / f"{slug}_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
    )
    asset_store = FileAssetStore(output_dir / "assets")

    master_ref = await asset_store.store(args.master.read_bytes(), name=f"master{args.master.suffix or '.png'}")
    subject = Subject(
        subject_id=slug,
        name=args.name,
        traits=args.traits,
        personality=args.personality,
        master_reference=master_ref,
    )

    generator = ReferenceSetGenerator(
        GeminiImageSynthesizer(asset_store),
        GeminiConsistencyJudge(asset_store),
    )
    options = GenerationOptions(
        quality_threshold=args.quality_threshold,
        max_retries=args.max_retries,
        seed=args.seed,
        strict_quality=args.strict,
    )

    print(f"Generating {len(shots)} shot(s) for {args.name} into {output_dir}")
    result = GenerationResult()
    start = datetime.now()

    async for outcome in generator.iter_shots(subject, shots, options):
        add_outcome(result, outcome)
        prefix = f"[{outcome.index}/{outcome.total}] {outcome.shot.id}"
        if outcome.image is None:
            print(f"{prefix}: FAILED after {outcome.attempts} attempt(s) - {outcome.failure.error}")
            continue

        file_name = asset_file_name(outcome.shot, subject, outcome.attempts)
        shutil.copyfile(asset_store.path_for(outcome.image.asset_ref), output_dir / file_name)
        note = " (below threshold)" if outcome.image.quality_note else ""
        print(f"{prefix}: {outcome.image.quality_score:g}/100{note} -> {file_name}")

    result.elapsed_ms = int((datetime.now() - start).total_seconds() * 1000)
    (output_dir / "results.json").write_text(json.dumps(result.to_dict(), indent=2))

    print("\n--- Generation Summary ---")
    print(f"Generated: {len(result.generated_images)}/{result.shots_attempted}")
    print(f"Attempts: {result.total_attempts}")
    if result.average_quality is not None:
        print(f"Average quality: {result.average_quality}/100")
    print(f"Elapsed: {result.elapsed_ms / 1000:.1f}s")

    return 0 if result.success else 1


def main():
    args = parse_args()
    if args.verbose:
        configure_logging(json_format=False)

    if not args.master.is_file():
        print(f"Master image not found: {args.master}", file=sys.stderr)
        sys.exit(2)

    try:
        sys.exit(asyncio.run(generate(args)))
    except CharacterLibraryError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
