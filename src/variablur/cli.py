"""
Command-line interface for the variable blur / glass effect engine.

Usage:
    variablur render path/to/effect.yaml [--output outputs] [--timestamp TS]
    variablur validate path/to/effect.yaml
    variablur synthesize --width 320 --height 200 --refraction 1.5 --output map.png
    variablur preview path/to/effect.yaml --output preview.png
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

import numpy as np

from . import EffectConfig, load_effect_config, plan_effect, synthesize
from .core.displacement import DisplacementField, HORIZONTAL_CHANNEL, NEUTRAL_VALUE, VERTICAL_CHANNEL
from .core.refraction import RefractionOptions
from .exporters import export_effect_outputs, write_png

Logger = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(message)s")


def add_shared_config_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "config",
        type=Path,
        help="Path to the YAML file describing the element and effect.",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="variablur",
        description="Compute variable blur layer stacks and glass refraction maps.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    render_parser = subparsers.add_parser(
        "render",
        help="Plan the effect and export its artefacts (layer manifest .json, displacement map .png).",
    )
    add_shared_config_argument(render_parser)
    render_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Root directory for exported artefacts (defaults to VARIABLUR_OUTPUTS or outputs/).",
    )
    render_parser.add_argument(
        "--timestamp",
        type=str,
        default=None,
        help="Override timestamp component of the output directory (mainly for testing).",
    )

    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate an effect file and print the planned layer stack without exporting.",
    )
    add_shared_config_argument(validate_parser)

    synth_parser = subparsers.add_parser(
        "synthesize",
        help="Write a glass refraction displacement map for the given geometry.",
    )
    synth_parser.add_argument("--width", type=float, required=True, help="Element width in pixels.")
    synth_parser.add_argument("--height", type=float, required=True, help="Element height in pixels.")
    synth_parser.add_argument("--refraction", type=float, default=1.5, help="Refraction strength (1.0 is neutral).")
    synth_parser.add_argument("--offset", type=float, default=0.0, help="Rim thickness in pixels (0 derives it).")
    synth_parser.add_argument("--radius", type=float, default=0.0, help="Corner radius in pixels.")
    synth_parser.add_argument("--no-lens", action="store_true", help="Disable the lens curvature pass.")
    synth_parser.add_argument("--output", type=Path, required=True, help="Destination PNG path.")

    preview_parser = subparsers.add_parser(
        "preview",
        help="Plot the displacement channels of an effect to a PNG image.",
    )
    add_shared_config_argument(preview_parser)
    preview_parser.add_argument("--output", type=Path, required=True, help="Path to save the preview PNG.")

    return parser


def summarize_configuration(config_path: Path, config: Optional[EffectConfig] = None) -> str:
    if config is None:
        config = load_effect_config(config_path)
    plan = plan_effect(config.style(), config.box())
    lines = [
        f"Configuration: {config_path}",
        f"  Element: {config.element.width:g}x{config.element.height:g} px | radius {config.element.radius:g} px",
        f"  Direction: {plan.direction.value} | offset {config.resolved_offset():.2f} px | filter '{config.filter}'",
        f"  Layers ({len(plan.layers)}):",
    ]
    for layer in plan.layers:
        a, c, d = layer.mask.stops
        lines.append(f"    {layer.index}. blur {layer.blur:.3f} | stops {a:.2f}% {c:.2f}% {d:.2f}%")
    lines.append(f"  Overlay: filter '{plan.overlay.backdrop_filter}' | color {plan.overlay.color}")
    if config.glass is not None:
        lines.append(
            f"  Glass: refraction {config.glass.refraction:g} | offset {config.resolved_glass_offset():.2f} px"
        )
    return "\n".join(lines)


def render_command(args: argparse.Namespace) -> int:
    config_path: Path = args.config
    if not config_path.exists():
        Logger.error("Configuration file not found: %s", config_path)
        return 2

    try:
        config = load_effect_config(config_path)
        plan = plan_effect(config.style(), config.box())
        output_dir = export_effect_outputs(
            plan,
            config,
            output_root=args.output,
            timestamp=args.timestamp,
        )
        Logger.info("Render complete. Artefacts written to: %s", output_dir)
        return 0
    except Exception as exc:  # pylint: disable=broad-except
        Logger.error("Render failed: %s", exc)
        if Logger.isEnabledFor(logging.DEBUG):
            Logger.exception("Stack trace")
        return 1


def validate_command(args: argparse.Namespace) -> int:
    config_path: Path = args.config
    if not config_path.exists():
        Logger.error("Configuration file not found: %s", config_path)
        return 2

    try:
        config = load_effect_config(config_path)
        print(summarize_configuration(config_path, config=config))
        Logger.info("Validation succeeded.")
        return 0
    except Exception as exc:  # pylint: disable=broad-except
        Logger.error("Validation failed: %s", exc)
        if Logger.isEnabledFor(logging.DEBUG):
            Logger.exception("Stack trace")
        return 1


def synthesize_command(args: argparse.Namespace) -> int:
    try:
        options = RefractionOptions(lens_pass=not args.no_lens)
        field = synthesize(args.refraction, args.offset, args.width, args.height, args.radius, options=options)
        write_png(field, args.output)
    except Exception as exc:  # noqa: BLE001
        Logger.error("Synthesis failed: %s", exc)
        return 1

    Logger.info("Displacement map (%dx%d) written to %s", field.width, field.height, args.output)
    return 0


def preview_command(args: argparse.Namespace) -> int:
    config_path: Path = args.config
    if not config_path.exists():
        Logger.error("Configuration file not found: %s", config_path)
        return 2

    try:
        config = load_effect_config(config_path)
        plan = plan_effect(config.style(), config.box())
    except Exception as exc:  # noqa: BLE001
        Logger.error("Preview failed: %s", exc)
        return 1

    if plan.displacement is None:
        Logger.error("Effect has no glass refraction; nothing to preview.")
        return 1

    try:
        _write_preview_image(args.output, plan.displacement)
        Logger.info("Preview image saved to %s", args.output)
    except Exception as exc:  # noqa: BLE001
        Logger.error("Failed to write preview image: %s", exc)
        return 1
    return 0


def _write_preview_image(output_path: Path, field: DisplacementField) -> None:
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    pixels = field.pixels.astype(np.int16)
    horizontal = pixels[..., HORIZONTAL_CHANNEL] - NEUTRAL_VALUE
    vertical = pixels[..., VERTICAL_CHANNEL] - NEUTRAL_VALUE

    fig, axes = plt.subplots(1, 2, figsize=(10, 4))
    for ax, channel, title in zip(axes, (horizontal, vertical), ("Horizontal (R)", "Vertical (B)")):
        image = ax.imshow(channel, cmap="coolwarm", vmin=-128, vmax=128, origin="upper")
        ax.set_title(title)
        ax.set_xlabel("X (px)")
        ax.set_ylabel("Y (px)")
        fig.colorbar(image, ax=ax, shrink=0.8)
    fig.tight_layout()
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=150)
    plt.close(fig)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.command == "render":
        return render_command(args)
    if args.command == "validate":
        return validate_command(args)
    if args.command == "synthesize":
        return synthesize_command(args)
    if args.command == "preview":
        return preview_command(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
