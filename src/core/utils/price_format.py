"""가격 표시 포맷 유틸리티.

티커/알림 표시 규칙:
- 변동폭: 0 이상은 "+₹", 음수는 "-₹" + 절대값
- 변동률: 항상 소수 둘째 자리, 0 이상은 "+" 접두사
- 방향: up/down 외의 값(stable, None 포함)은 모두 중립 스타일
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from src.core.types import ChangeDirection

CURRENCY_SYMBOL: Final[str] = "₹"


@dataclass(slots=True, frozen=True, eq=True, repr=True, match_args=False, kw_only=True)
class DirectionStyle:
    """변동 방향 표시 스타일"""

    css_class: str
    color: str
    icon: str
    emoji: str


UP_STYLE: Final[DirectionStyle] = DirectionStyle(
    css_class="text-green-600", color="green", icon="arrow-up", emoji="📈"
)
DOWN_STYLE: Final[DirectionStyle] = DirectionStyle(
    css_class="text-red-600", color="red", icon="arrow-down", emoji="📉"
)
NEUTRAL_STYLE: Final[DirectionStyle] = DirectionStyle(
    css_class="text-gray-500", color="gray", icon="minus", emoji="➡️"
)


def _plain_number(value: float | int) -> str:
    """정수값 float 은 소수점 없이 (15.0 → "15"), 그 외는 그대로"""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_price_change(price_change: float | int) -> str:
    """부호 포함 통화 표기.

    Examples:
        >>> format_price_change(15)
        '+₹15'
        >>> format_price_change(-15)
        '-₹15'
        >>> format_price_change(0)
        '+₹0'
    """
    if price_change < 0:
        return f"-{CURRENCY_SYMBOL}{_plain_number(abs(price_change))}"
    return f"+{CURRENCY_SYMBOL}{_plain_number(abs(price_change))}"


def format_change_percentage(change_percentage: float | int) -> str:
    """소수 둘째 자리 변동률.

    Examples:
        >>> format_change_percentage(2.5)
        '+2.50%'
        >>> format_change_percentage(-2.5)
        '-2.50%'
    """
    if change_percentage >= 0:
        # -0.0 도 여기로 오므로 abs 로 부호 제거
        return f"+{abs(change_percentage):.2f}%"
    return f"{change_percentage:.2f}%"


def format_price(price: float | int) -> str:
    """천 단위 구분 가격 (₹2,515 / ₹2,515.5)"""
    if isinstance(price, float) and not price.is_integer():
        return f"{CURRENCY_SYMBOL}{price:,.2f}".rstrip("0").rstrip(".")
    return f"{CURRENCY_SYMBOL}{int(price):,}"


def direction_style(direction: ChangeDirection | str | None) -> DirectionStyle:
    """변동 방향 → 표시 스타일 (순수 함수)"""
    match direction:
        case ChangeDirection.UP | "up":
            return UP_STYLE
        case ChangeDirection.DOWN | "down":
            return DOWN_STYLE
        case _:
            return NEUTRAL_STYLE


def price_change_class(direction: ChangeDirection | str | None) -> str:
    return direction_style(direction).css_class


def price_change_icon(direction: ChangeDirection | str | None) -> str:
    return direction_style(direction).emoji
