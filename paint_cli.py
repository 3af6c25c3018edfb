#!/usr/bin/env python3
"""CLI wrapper for the paint visualizer.

Usage:
    python paint_cli.py --image https://example.com/house.jpg --codes ND-050 KP-200
    python paint_cli.py --image "data:image/jpeg;base64,/9j/4AAQ..." --codes SK-300 --max-patterns 1 --json
    python paint_cli.py --list-paints
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from dotenv import load_dotenv

import config
import log_setup
from paint_catalog import PaintCatalog


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate repainted previews of a house photo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python paint_cli.py --image https://example.com/house.jpg --codes ND-050 KP-200
  python paint_cli.py --image https://example.com/house.jpg --codes ND-050 --provider none
""",
    )
    parser.add_argument("--image", default=None, help="House photo (URL or base64 data URI)")
    parser.add_argument("--codes", nargs="+", default=None, help="Paint product codes")
    parser.add_argument("--max-patterns", type=int, default=None, help="Process at most N paints")
    parser.add_argument("--quality", type=int, default=None, help="Image quality 1–100 (not applied yet)")
    parser.add_argument("--max-width", type=int, default=None, help="Max width in px (not applied yet)")
    parser.add_argument("--max-height", type=int, default=None, help="Max height in px (not applied yet)")
    parser.add_argument(
        "--provider",
        choices=["replicate", "stability-ai", "local", "none"],
        default=None,
        help="Generation backend (default: PAINT_VIZ_PROVIDER or replicate)",
    )
    parser.add_argument("--model", default=None, help="Replicate model version")
    parser.add_argument("--steps", type=int, default=None, help="Inference steps (default: 50)")
    parser.add_argument("--guidance-scale", type=float, default=None, help="Guidance scale (default: 7.5)")
    parser.add_argument("--strength", type=float, default=None, help="Prompt strength (default: 0.8)")
    parser.add_argument("--json", action="store_true", help="Print full JSON result to stdout")
    parser.add_argument("--list-paints", action="store_true", help="List catalogue paints and exit")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_paints:
        _list_paints()
        return 0

    if not args.image:
        parser.error("--image is required")
    if not args.codes:
        parser.error("--codes is required")

    load_dotenv()
    settings = config.load_settings(dotenv=False)
    log_setup.configure(settings["log_level"])

    overrides = {
        "provider": args.provider,
        "model": args.model,
        "steps": args.steps,
        "guidance_scale": args.guidance_scale,
        "strength": args.strength,
    }
    settings.update({k: v for k, v in overrides.items() if v is not None})
    if args.provider:
        settings["api_key"] = config.api_key_for(args.provider)

    try:
        visualizer = config.build_visualizer(settings)
    except ValueError as exc:
        print(f"✗  {exc}", file=sys.stderr)
        return 2

    options = {
        "quality": args.quality,
        "max_patterns": args.max_patterns,
        "max_width": args.max_width,
        "max_height": args.max_height,
    }

    _echo(f"\n  ✦ Paint Visualizer CLI")
    _echo(f"  Image   : {args.image[:60]}")
    _echo(f"  Paints  : {' '.join(args.codes)}")
    _echo(f"  Backend : {settings['provider']}\n")

    try:
        result = visualizer.submit(args.image, args.codes, options)
    finally:
        visualizer.shutdown()

    if result.status == "failed":
        print(f"✗  {result.error}", file=sys.stderr)
        if args.json:
            print(result.model_dump_json(indent=2))
        return 1

    for artifact in result.artifacts:
        prefix = "  ✓ " if artifact.generated_by == "backend" else "  – "
        _echo(f"{prefix}{artifact.paint.product_code:<8} {artifact.image_data}")

    n_real = sum(1 for a in result.artifacts if a.generated_by == "backend")
    _echo(f"\n  ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━")
    _echo(f"  Request : {result.request_id}")
    _echo(f"  Images  : {len(result.artifacts)} ({n_real} generated, {len(result.artifacts) - n_real} placeholder)")
    _echo(f"  Duration: {(result.processing_time_ms or 0) / 1000:.1f}s\n")

    if args.json:
        print(result.model_dump_json(indent=2))

    return 0


def _list_paints() -> None:
    catalog = PaintCatalog()
    print("\nAvailable Paints")
    print("─" * 40)
    for paint in catalog.all_paints():
        price = f"¥{paint.price_per_sqm}/㎡" if paint.price_per_sqm else "—"
        print(f"  {paint.product_code:<8} {paint.manufacturer:<14} {paint.color.name:<12} {paint.type:<16} {price}")
    stats = catalog.statistics()
    print(f"\n  {stats['total_paints']} paints\n")


def _echo(msg: str) -> None:
    print(msg, flush=True)


if __name__ == "__main__":
    raise SystemExit(main())
