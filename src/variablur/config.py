"""
Configuration models and loader for effect files.

An effect file is a YAML document describing one element and the variable
blur / glass effect applied to it. It is the numeric stand-in for the CSS
custom properties the effect is normally driven by.
"""

from __future__ import annotations

import ast
import operator
import re
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, confloat, conint, field_validator

from .core.filters import parse_filter_list
from .core.layers import EffectStyle, ElementBox
from .core.mask import Direction, axis_extent
from .core.refraction import RefractionOptions
from .errors import InvalidArgument
from .settings import default_layer_count


PositiveFloat = confloat(gt=0)
NonNegativeFloat = confloat(ge=0)

Length = Union[float, str]

_LENGTH_RE = re.compile(r"^(-?\d*\.?\d+)\s*(px|%)?$")
_CALC_RE = re.compile(r"^calc\((.*)\)$", re.IGNORECASE | re.DOTALL)
_PERCENT_RE = re.compile(r"(\d*\.?\d+)\s*%")
_PIXEL_RE = re.compile(r"(\d*\.?\d+)\s*px\b")

_CALC_NAMES = ("width", "height")
_BINARY_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
}
_UNARY_OPS = {ast.UAdd: operator.pos, ast.USub: operator.neg}
_CALC_NODES = (
    (ast.Expression, ast.BinOp, ast.UnaryOp, ast.Constant, ast.Name, ast.Load)
    + tuple(_BINARY_OPS)
    + tuple(_UNARY_OPS)
)


def _parse_calc(text: str) -> Optional[ast.Expression]:
    """
    Parse a ``calc(...)`` length into a checked expression tree.

    Percentages become fractions of ``width`` and ``px`` units are dropped.
    Only arithmetic on numbers and the ``width``/``height`` keywords is
    accepted. Returns None when ``text`` is not a ``calc()`` expression.
    """
    match = _CALC_RE.match(text.strip())
    if match is None:
        return None
    body = _PERCENT_RE.sub(r"(\1 / 100 * width)", match.group(1))
    body = _PIXEL_RE.sub(r"\1", body)
    try:
        tree = ast.parse(body.strip(), mode="eval")
    except SyntaxError:
        raise InvalidArgument(f"Malformed calc() expression: {text!r}") from None

    for node in ast.walk(tree):
        if not isinstance(node, _CALC_NODES):
            raise InvalidArgument(f"Unsupported term {type(node).__name__} in {text!r}")
        if isinstance(node, ast.Name) and node.id not in _CALC_NAMES:
            raise InvalidArgument(f"Unknown keyword {node.id!r} in {text!r}")
        if isinstance(node, ast.Constant) and (
            isinstance(node.value, bool) or not isinstance(node.value, (int, float))
        ):
            raise InvalidArgument(f"Unsupported constant {node.value!r} in {text!r}")
    return tree


def _evaluate(node: ast.AST, names: Dict[str, float]) -> float:
    if isinstance(node, ast.Expression):
        return _evaluate(node.body, names)
    if isinstance(node, ast.Constant):
        return float(node.value)
    if isinstance(node, ast.Name):
        return names[node.id]
    if isinstance(node, ast.UnaryOp):
        return _UNARY_OPS[type(node.op)](_evaluate(node.operand, names))
    if isinstance(node, ast.BinOp):
        left = _evaluate(node.left, names)
        right = _evaluate(node.right, names)
        if isinstance(node.op, ast.Div) and right == 0:
            raise InvalidArgument("Division by zero in calc() expression")
        return _BINARY_OPS[type(node.op)](left, right)
    raise InvalidArgument(f"Unsupported term {type(node).__name__}")


def resolve_length(value: Length, extent: float, cross_extent: Optional[float] = None) -> float:
    """
    Resolve a length to pixels.

    Accepts a plain number (pixels), ``"<n>px"``, ``"<n>%"`` of ``extent`` or
    a ``calc()`` expression such as ``"calc(50% + 20px)"``. Inside ``calc()``
    the ``width`` keyword is ``extent`` and ``height`` is ``cross_extent``
    (``extent`` when not given).
    """
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    tree = _parse_calc(text)
    if tree is not None:
        cross = extent if cross_extent is None else cross_extent
        return _evaluate(tree, {"width": float(extent), "height": float(cross)})

    match = _LENGTH_RE.match(text)
    if match is None:
        raise InvalidArgument(f"Unsupported length: {value!r}")
    number = float(match.group(1))
    if match.group(2) == "%":
        return number / 100.0 * float(extent)
    return number


def _validate_length(value: Length) -> Length:
    if isinstance(value, str) and _parse_calc(value) is None and _LENGTH_RE.match(value.strip()) is None:
        raise ValueError(f"Length must be a number, '<n>px', '<n>%' or calc(...), got {value!r}")
    return value


class ElementConfig(BaseModel):
    """Element box the effect is attached to."""

    width: PositiveFloat = Field(..., description="Element width in pixels")
    height: PositiveFloat = Field(..., description="Element height in pixels")
    radius: NonNegativeFloat = Field(default=0.0, description="Corner radius in pixels")


class GlassConfig(BaseModel):
    """Glass refraction parameters."""

    refraction: float = Field(default=1.0, description="Refraction strength; 1.0 is neutral")
    offset: Length = Field(
        default=0.0,
        description="Rim thickness in pixels or percent of the shorter side; 0 derives it from the element",
    )
    edge_fraction: confloat(ge=0, le=1) = Field(
        default=0.3, description="Rim thickness as a fraction of the half extent when offset is 0"
    )
    lens_pass: bool = Field(default=True, description="Add the tangential lens-curvature pass")
    lens_damping: NonNegativeFloat = Field(default=0.75, description="Lens pass strength relative to the rim")
    corner_aware: bool = Field(default=True, description="Follow rounded corners when radius > 0")
    falloff: Literal["linear", "quadratic", "smoothstep", "glass"] = Field(
        default="linear", description="Easing curve of the rim displacement"
    )
    color_interpolation: Literal["sRGB", "linearRGB"] = Field(
        default="sRGB", description="Colour space the consuming displacement filter works in"
    )

    @field_validator("offset")
    @classmethod
    def _check_offset(cls, value: Length) -> Length:
        return _validate_length(value)

    def options(self) -> RefractionOptions:
        return RefractionOptions(
            edge_fraction=self.edge_fraction,
            lens_pass=self.lens_pass,
            lens_damping=self.lens_damping,
            corner_aware=self.corner_aware,
            falloff=self.falloff,
        )


class EffectConfig(BaseModel):
    """Top-level effect description."""

    element: ElementConfig
    filter: str = Field(default="", description="Backdrop filter list, e.g. 'blur(20px) brightness(1.1)'")
    direction: Direction = Field(default=Direction.BOTTOM, description="Edge the blur fades in from")
    offset: Length = Field(default="100%", description="Fade length in pixels or percent of the fade axis")
    layers: conint(gt=0) = Field(default_factory=default_layer_count, description="Number of blur layers")
    color: str = Field(default="transparent", description="Tint colour of the overlay layer")
    glass: Optional[GlassConfig] = Field(default=None, description="Optional glass refraction")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Optional metadata for bookkeeping")

    @field_validator("direction", mode="before")
    @classmethod
    def _parse_direction(cls, value: Any) -> Direction:
        return Direction.parse(value)

    @field_validator("offset")
    @classmethod
    def _check_offset(cls, value: Length) -> Length:
        return _validate_length(value)

    def box(self) -> ElementBox:
        return ElementBox(width=self.element.width, height=self.element.height, radius=self.element.radius)

    def resolved_offset(self) -> float:
        extent = axis_extent(self.direction, self.element.width, self.element.height)
        cross = self.element.height if self.direction.is_horizontal else self.element.width
        return resolve_length(self.offset, extent, cross)

    def resolved_glass_offset(self) -> float:
        if self.glass is None:
            return 0.0
        shorter = min(self.element.width, self.element.height)
        longer = max(self.element.width, self.element.height)
        return resolve_length(self.glass.offset, shorter, longer)

    def style(self) -> EffectStyle:
        return EffectStyle(
            filters=tuple(parse_filter_list(self.filter)),
            direction=self.direction,
            offset=self.resolved_offset(),
            layers=self.layers,
            color=self.color,
            glass_refraction=self.glass.refraction if self.glass is not None else None,
            glass_offset=self.resolved_glass_offset(),
            refraction_options=self.glass.options() if self.glass is not None else RefractionOptions(),
        )


def load_effect_config(path: Union[str, Path]) -> EffectConfig:
    """
    Load and validate an effect description from a YAML file.

    Parameters
    ----------
    path:
        Path to the YAML file.

    Returns
    -------
    EffectConfig
        Parsed and validated configuration object.
    """

    config_path = Path(path).resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as handle:
        raw_data = yaml.safe_load(handle) or {}

    return EffectConfig.model_validate(raw_data)
