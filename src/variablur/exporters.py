"""Output exporters for effect artefacts.

Provides lossless PNG encoding of displacement maps, data URLs for inline use
by an image-based displacement filter, and JSON manifests of the layer stack.
"""

from __future__ import annotations

import base64
import json
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

import cv2
import numpy as np

from .config import EffectConfig
from .core.color import encode_for_filter
from .core.displacement import DisplacementField
from .core.layers import EffectPlan
from .settings import output_root as default_output_root

ImageLike = Union[DisplacementField, np.ndarray]


def _rgba(image: ImageLike) -> np.ndarray:
    data = image.to_array() if isinstance(image, DisplacementField) else np.asarray(image)
    if data.ndim != 3 or data.shape[2] != 4 or data.dtype != np.uint8:
        raise ValueError(f"Expected (height, width, 4) uint8 RGBA data, got {data.shape} {data.dtype}")
    return data


def encode_png(image: ImageLike) -> bytes:
    """Encode RGBA data as PNG bytes. PNG is lossless, so decoding restores every value."""
    bgra = cv2.cvtColor(_rgba(image), cv2.COLOR_RGBA2BGRA)
    ok, buffer = cv2.imencode(".png", bgra)
    if not ok:
        raise IOError("PNG encoding failed")
    return buffer.tobytes()


def decode_png(data: bytes) -> np.ndarray:
    """Decode PNG bytes back to an RGBA ``uint8`` array."""
    raw = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
    if raw is None:
        raise ValueError("Could not decode PNG data")
    if raw.ndim != 3 or raw.shape[2] != 4:
        raise ValueError(f"Expected a 4-channel PNG, got shape {raw.shape}")
    return cv2.cvtColor(raw, cv2.COLOR_BGRA2RGBA)


def png_data_url(image: ImageLike) -> str:
    payload = base64.b64encode(encode_png(image)).decode("ascii")
    return f"data:image/png;base64,{payload}"


def write_png(image: ImageLike, output_path: Path) -> None:
    """
    Write RGBA data to a PNG file.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(encode_png(image))


def determine_effect_name(config: EffectConfig, fallback: str = "effect") -> str:
    """
    Determine a filesystem-friendly effect name.

    Preference order:
    1. `config.metadata["name"]`
    2. Provided fallback string
    """
    value = config.metadata.get("name")
    if isinstance(value, str) and value.strip():
        return _sanitize_name(value)
    return _sanitize_name(fallback)


def _sanitize_name(name: str) -> str:
    safe = "".join(ch if ch.isalnum() or ch in ("-", "_") else "_" for ch in name.strip().lower())
    return safe or "effect"


def prepare_output_directory(output_root: Path, timestamp: Optional[str] = None) -> Path:
    """
    Create the directory where all artefacts for one export will be stored.
    """
    ts = timestamp or datetime.now().strftime("%Y%m%d_%H%M%S_%f")

    output_dir = output_root / "effects" / ts
    counter = 1
    while output_dir.exists():
        output_dir = output_root / "effects" / f"{ts}_{counter}"
        counter += 1

    output_dir.mkdir(parents=True, exist_ok=False)
    return output_dir


def export_layer_manifest(
    plan: EffectPlan,
    output_path: Path,
    metadata: Optional[dict] = None,
    displacement_file: Optional[str] = None,
) -> None:
    """
    Write the layer stack (blur values, masks, overlay) to a JSON file.
    """
    payload = plan.to_dict()
    if displacement_file is not None:
        payload.setdefault("displacement", {})["file"] = displacement_file
    payload["metadata"] = metadata or {}

    with Path(output_path).open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2)


def export_effect_outputs(
    plan: EffectPlan,
    config: EffectConfig,
    output_root: Optional[Path] = None,
    timestamp: Optional[str] = None,
    name: Optional[str] = None,
) -> Path:
    """
    Export all artefacts for one effect.

    Returns the path to the directory containing the artefacts.
    """
    if output_root is None:
        output_root = default_output_root()
    else:
        output_root = Path(output_root)
    output_root.mkdir(parents=True, exist_ok=True)

    name = name or determine_effect_name(config)
    output_dir = prepare_output_directory(output_root, timestamp)

    displacement_file = None
    if plan.displacement is not None:
        interpolation = config.glass.color_interpolation if config.glass is not None else "sRGB"
        displacement_file = f"{name}_displacement.png"
        write_png(encode_for_filter(plan.displacement, interpolation), output_dir / displacement_file)

    export_layer_manifest(
        plan,
        output_dir / f"{name}_layers.json",
        metadata=config.metadata,
        displacement_file=displacement_file,
    )
    return output_dir
