#!/usr/bin/env python3
"""
Multi-threshold object detection CLI.

Thin wrapper over ``blobdetect.detection.run()`` plus helpers to write and
inspect configuration documents.

Examples:
    python scripts/run_object_detection.py init-config --profile range_blobs --out config/detector.json
    python scripts/run_object_detection.py detect --image coins.png --config config/detector.json --out out/coins.json
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

# Ensure the repository root is importable when running as a script.
HERE = Path(__file__).resolve()
ROOT = HERE.parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import click

from blobdetect.detection import DetectionParams, run
from blobdetect.errors import ConfigurationError, PreconditionError
from blobdetect.persistence import save_parameters
from blobdetect.profiles import PROFILES, as_policy_dict, get_profile


def emit_json(d: dict, pretty: bool = True):
    """Print dict as JSON."""
    print(json.dumps(d, indent=2) if pretty else json.dumps(d))


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Debug logging (per-level candidate counts)")
def cli(verbose: bool):
    """Blob detection across threshold levels."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@cli.command("detect")
@click.option(
    "--image", type=click.Path(exists=True, dir_okay=False, path_type=Path), required=True,
    help="Input image (8-bit gray, BGR or BGRA)"
)
@click.option(
    "--out", type=click.Path(path_type=Path), required=True,
    help="Output summary JSON path"
)
@click.option(
    "--config", "config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path), default=None,
    help="Detector configuration JSON (overrides --profile)"
)
@click.option(
    "--profile", type=click.Choice(sorted(PROFILES)), default=None,
    help="Named parameter profile used when no --config is given"
)
@click.option("--emit-csv", is_flag=True, help="Also write detections as CSV")
@click.option(
    "--csv-path", type=click.Path(path_type=Path), default=None,
    help="CSV path (default: summary path with .csv suffix)"
)
@click.option(
    "--max-workers", type=click.IntRange(min=1), default=None,
    help="Extract threshold levels on this many threads"
)
def detect_cmd(image, out, config_path, profile, emit_csv, csv_path, max_workers):
    """Detect objects in one image and write a summary JSON."""
    try:
        out_path = run(
            DetectionParams(
                image_path=image,
                out_path=out,
                config_path=config_path,
                profile=profile,
                emit_csv=emit_csv,
                csv_path=csv_path,
                max_workers=max_workers,
            )
        )
    except (ConfigurationError, PreconditionError, FileNotFoundError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    summary = json.loads(out_path.read_text())
    emit_json({"count": summary["count"], "out": str(out_path)})


@cli.command("init-config")
@click.option(
    "--profile", type=click.Choice(sorted(PROFILES)), default=None,
    help="Profile to start from (default: range_blobs)"
)
@click.option(
    "--out", type=click.Path(path_type=Path), required=True,
    help="Where to write the configuration JSON"
)
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def init_config_cmd(profile, out, force):
    """Write a configuration document from a profile."""
    if out.exists() and not force:
        click.echo(f"Error: {out} exists (use --force to overwrite)", err=True)
        sys.exit(1)
    chosen = get_profile(profile)
    save_parameters(chosen.parameters(), out)
    click.echo(f"Wrote {chosen.name} configuration to {out}", err=True)


@cli.command("show-profiles")
def show_profiles_cmd():
    """Print the built-in profiles as JSON."""
    emit_json(as_policy_dict())


if __name__ == "__main__":
    cli()
