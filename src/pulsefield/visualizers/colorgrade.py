"""
Color handling and post-processing.

HSL conversions used by the renderer, the typed accent color that
seeds burst and retint hues, and a glow bloom for exported frames.
"""

import colorsys
import re
from dataclasses import dataclass

import numpy as np
from PIL import Image, ImageFilter

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def hsl_to_rgb(hue: float, saturation: float, lightness: float) -> tuple[int, int, int]:
    """
    Convert CSS-style HSL to an 8-bit RGB tuple.

    Args:
        hue: Degrees, any value (wrapped onto 0-360).
        saturation: Percent, 0-100.
        lightness: Percent, 0-100.
    """
    h = (hue % 360.0) / 360.0
    s = min(max(saturation / 100.0, 0.0), 1.0)
    l = min(max(lightness / 100.0, 0.0), 1.0)
    r, g, b = colorsys.hls_to_rgb(h, l, s)
    return (int(round(r * 255)), int(round(g * 255)), int(round(b * 255)))


@dataclass(frozen=True)
class AccentColor:
    """An 8-bit RGB accent color, validated on construction."""

    r: int
    g: int
    b: int

    def __post_init__(self):
        for name in ("r", "g", "b"):
            value = getattr(self, name)
            if not 0 <= value <= 255:
                raise ValueError(f"{name} component out of range: {value}")

    @classmethod
    def from_hex(cls, text: str) -> "AccentColor":
        """Parse '#rrggbb', 'rrggbb' or '#rgb'."""
        match = _HEX_RE.match(text.strip())
        if not match:
            raise ValueError(f"not a hex color: {text!r}")
        digits = match.group(1)
        if len(digits) == 3:
            digits = "".join(ch * 2 for ch in digits)
        return cls(int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))

    @property
    def rgb(self) -> tuple[int, int, int]:
        return (self.r, self.g, self.b)

    @property
    def hue(self) -> float:
        """Hue in degrees, 0-360."""
        h, _, _ = colorsys.rgb_to_hls(self.r / 255.0, self.g / 255.0, self.b / 255.0)
        return h * 360.0

    def to_hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"


DEFAULT_ACCENT = AccentColor.from_hex("#00fff7")


def add_glow(
    frame: np.ndarray,
    intensity: float = 0.3,
    radius: int = 12,
) -> np.ndarray:
    """
    Screen-blend a gaussian-blurred copy for bloom/glow.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        intensity: Glow opacity (0-1).
        radius: Blur radius in pixels.

    Returns:
        (H, W, 3) uint8 RGB array with glow applied.
    """
    if intensity <= 0:
        return frame

    blurred = Image.fromarray(frame).filter(ImageFilter.GaussianBlur(radius=radius))
    a = frame.astype(np.float32) / 255.0
    b = np.asarray(blurred, dtype=np.float32) / 255.0 * intensity

    # Screen blend: result = 1 - (1-a)(1-b)
    screen = 1.0 - (1.0 - a) * (1.0 - b)
    return (screen * 255).astype(np.uint8)
