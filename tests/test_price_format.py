from __future__ import annotations

import pytest

from src.core.types import ChangeDirection
from src.core.utils.price_format import (
    DOWN_STYLE,
    NEUTRAL_STYLE,
    UP_STYLE,
    direction_style,
    format_change_percentage,
    format_price,
    format_price_change,
    price_change_class,
    price_change_icon,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (15, "+₹15"),
        (15.0, "+₹15"),
        (0, "+₹0"),
        (-15, "-₹15"),
        (-2.5, "-₹2.5"),
    ],
)
def test_format_price_change(value: float, expected: str) -> None:
    assert format_price_change(value) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (2.5, "+2.50%"),
        (-2.5, "-2.50%"),
        (0, "+0.00%"),
        (-0.0, "+0.00%"),
        (0.604, "+0.60%"),
    ],
)
def test_format_change_percentage(value: float, expected: str) -> None:
    assert format_change_percentage(value) == expected


def test_format_price_uses_thousands_separator() -> None:
    assert format_price(2515) == "₹2,515"
    assert format_price(125000.0) == "₹125,000"
    assert format_price(2515.5) == "₹2,515.5"


def test_direction_style_maps_up_and_down() -> None:
    assert direction_style(ChangeDirection.UP) is UP_STYLE
    assert direction_style("up") is UP_STYLE
    assert direction_style(ChangeDirection.DOWN) is DOWN_STYLE
    assert price_change_class("down") == "text-red-600"
    assert price_change_icon("up") == "📈"


@pytest.mark.parametrize("direction", [ChangeDirection.STABLE, "stable", None, "sideways"])
def test_direction_style_falls_back_to_neutral(direction: object) -> None:
    assert direction_style(direction) is NEUTRAL_STYLE  # type: ignore[arg-type]
    assert NEUTRAL_STYLE.color == "gray"
