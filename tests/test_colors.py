import pytest

from textmarks.utils.colors import DEFAULT_COLOR, convert_rgb_to_hex, initial_components, resolve_color
from textmarks.utils.errors import UnsupportedColorspace


def test_convert_rgb_to_hex() -> None:
    assert convert_rgb_to_hex(1.0, 0.0, 0.5) == "#ff0080"
    assert convert_rgb_to_hex(2.0, -1.0, 0.0) == "#ff0000"


@pytest.mark.parametrize("space,components,expected", [
    ("DeviceGray", (0.0,), "#000000"),
    ("DeviceGray", (1.0,), "#ffffff"),
    ("G", (1.0,), "#ffffff"),
    ("DeviceRGB", (0.0, 0.0, 1.0), "#0000ff"),
    ("DeviceCMYK", (0.0, 0.0, 0.0, 1.0), "#000000"),
    ("DeviceCMYK", (1.0, 0.0, 0.0, 0.0), "#00ffff"),
])
def test_resolve_device_colours(space, components, expected) -> None:
    assert resolve_color(space, components) == expected


@pytest.mark.parametrize("space,components", [
    ("Pattern", ()),
    ("Separation", (0.5,)),
    ("DeviceRGB", (0.5,)),
])
def test_unsupported_colours_raise(space, components) -> None:
    with pytest.raises(UnsupportedColorspace):
        resolve_color(space, components)


def test_initial_components_are_black() -> None:
    assert resolve_color("DeviceCMYK", initial_components("DeviceCMYK")) == DEFAULT_COLOR
    assert resolve_color("DeviceRGB", initial_components("DeviceRGB")) == DEFAULT_COLOR
    assert initial_components("ICCBased") == (0.0,)
