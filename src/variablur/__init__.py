"""
Numeric core of the variable blur / glass refraction effect.

Exposes the blur distribution, mask geometry, displacement field and
refraction synthesis, plus the configuration loader and exporters built on
top of them.
"""

from .errors import InvalidArgument
from .core.blur import layer_blur_sequence, per_layer_exponential, per_layer_uniform
from .core.mask import Direction, MaskDescriptor, compute_mask_stops, overlay_mask
from .core.displacement import (
    NEUTRAL_VALUE,
    ConstantDisplacement,
    DisplacementField,
    EdgeTransformation,
    FieldDisplacement,
    TransformDirection,
    border_normal_and_distance,
)
from .core.refraction import RefractionOptions, synthesize
from .core.layers import EffectPlan, EffectStyle, ElementBox, plan_effect
from .config import EffectConfig, load_effect_config
from .settings import output_root, reset_settings_cache
from .exporters import decode_png, encode_png, export_effect_outputs, png_data_url, write_png

__all__ = [
    "InvalidArgument",
    "layer_blur_sequence",
    "per_layer_exponential",
    "per_layer_uniform",
    "Direction",
    "MaskDescriptor",
    "compute_mask_stops",
    "overlay_mask",
    "NEUTRAL_VALUE",
    "ConstantDisplacement",
    "DisplacementField",
    "EdgeTransformation",
    "FieldDisplacement",
    "TransformDirection",
    "border_normal_and_distance",
    "RefractionOptions",
    "synthesize",
    "EffectPlan",
    "EffectStyle",
    "ElementBox",
    "plan_effect",
    "EffectConfig",
    "load_effect_config",
    "output_root",
    "reset_settings_cache",
    "decode_png",
    "encode_png",
    "export_effect_outputs",
    "png_data_url",
    "write_png",
]
