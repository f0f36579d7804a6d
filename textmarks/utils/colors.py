"""
Colour resolution for text marks.

Converts device colour components to hex strings. Colour spaces other than the
device families raise UnsupportedColorspace; callers fall back to DEFAULT_COLOR.
"""

from typing import Sequence

from textmarks.utils.errors import UnsupportedColorspace

DEFAULT_COLOR = "#000000"

DEVICE_GRAY = "DeviceGray"
DEVICE_RGB = "DeviceRGB"
DEVICE_CMYK = "DeviceCMYK"

# Abbreviations allowed in inline images and some producers
COLOR_SPACE_ALIASES = {
    "G": DEVICE_GRAY,
    "RGB": DEVICE_RGB,
    "CMYK": DEVICE_CMYK,
}

COMPONENT_COUNTS = {
    DEVICE_GRAY: 1,
    DEVICE_RGB: 3,
    DEVICE_CMYK: 4,
}


def _channel(value: float) -> int:
    return max(0, min(255, int(round(float(value) * 255))))


def convert_rgb_to_hex(r: float, g: float, b: float) -> str:
    """
    Convert RGB components in [0, 1] to a hex colour.
    Example: (1.0, 0.0, 0.5) -> "#ff0080"
    """
    return f"#{_channel(r):02x}{_channel(g):02x}{_channel(b):02x}"


def initial_components(space: str) -> Sequence[float]:
    """Initial colour of a colour space after cs/CS (black for device spaces)."""
    space = COLOR_SPACE_ALIASES.get(space, space)
    if space == DEVICE_CMYK:
        return (0.0, 0.0, 0.0, 1.0)
    return (0.0,) * COMPONENT_COUNTS.get(space, 1)


def resolve_color(space: str, components: Sequence[float]) -> str:
    """
    Convert colour components in the given colour space to a hex string.

    Raises:
        UnsupportedColorspace: For spaces other than DeviceGray, DeviceRGB and
            DeviceCMYK, or when the component count does not fit the space
    """
    space = COLOR_SPACE_ALIASES.get(space, space)
    expected = COMPONENT_COUNTS.get(space)
    if expected is None:
        raise UnsupportedColorspace(space)
    if len(components) != expected:
        raise UnsupportedColorspace(f"{space} with {len(components)} components")

    if space == DEVICE_GRAY:
        gray = components[0]
        return convert_rgb_to_hex(gray, gray, gray)
    if space == DEVICE_RGB:
        return convert_rgb_to_hex(*components)

    # CMYK - convert to RGB (simplified conversion)
    c, m, y, k = [float(x) for x in components]
    return convert_rgb_to_hex((1 - c) * (1 - k), (1 - m) * (1 - k), (1 - y) * (1 - k))

