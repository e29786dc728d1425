"""
Command-line interface for shadow tile generation.

Usage:
    python -m shadowgen                      # Tiles, atlas and manifest in shadow_output/
    python -m shadowgen --output out/ --no-tiles
    python -m shadowgen --debug              # Flat palette tiles to check placement
    python -m shadowgen --verify             # Check the slot table only
    python -m shadowgen --help
"""

import argparse
import sys
from typing import List, Optional

from .config import ConfigError, load_config
from .neighbors import verify_table


def run_verify() -> int:
    """Print the slot table check. Exit status 1 on conflicts or fallout."""
    report = verify_table()

    print("=" * 60)
    print("Slot Table Verification")
    print("=" * 60)

    for slot in sorted(report.assignments):
        print(f"  slot {slot:2d} <- mask {report.assignments[slot]:3d}")
    for slot, first, second in report.conflicts:
        print(f"WARNING: Conflict for slot {slot} (masks {first} and {second})")
    for mask in report.fallout:
        print(f"WARNING: Fallout for mask {mask}")

    print(f"\n{report.summary()}")
    return 0 if report.ok else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shadowgen",
        description="Generate soft-shadow tiles for map cell edges and pack them into an atlas",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m shadowgen                         # Default run
  python -m shadowgen -o build/shadows        # Other output directory
  python -m shadowgen --config shadows.json   # Override tile/atlas/spread settings
  python -m shadowgen --verify                # Slot table check only
        """
    )

    parser.add_argument(
        "--output", "-o", type=str, default=None,
        help="Output directory (default: shadow_output)"
    )
    parser.add_argument(
        "--format", "-f", type=str, default=None, dest="image_format",
        help="Image format / file extension (default: png)"
    )
    parser.add_argument(
        "--config", "-c", type=str, default=None,
        help="JSON file with tile_size, atlas_width, spread_up, ... overrides"
    )
    parser.add_argument(
        "--debug", action="store_true",
        help="Write flat palette tiles instead of shadows"
    )
    parser.add_argument(
        "--no-tiles", action="store_true",
        help="Only write the atlas and its manifest"
    )
    parser.add_argument(
        "--timestamp", action="store_true",
        help="Inject a timestamp into image filenames"
    )
    parser.add_argument(
        "--verify", action="store_true",
        help="Check the mask -> slot table for conflicts and fallout, then exit"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verify:
        return run_verify()

    try:
        config = load_config(args.config, output_dir=args.output, image_format=args.image_format)
    except (ConfigError, OSError) as e:
        parser.error(str(e))

    from .pipeline import generate
    generate(
        config,
        debug=args.debug,
        write_tiles=not args.no_tiles,
        timestamp=args.timestamp,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
