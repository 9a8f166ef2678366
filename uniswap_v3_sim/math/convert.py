"""
Tick/Price 변환 함수

tick ↔ 정확한 가격(Fraction) ↔ sqrtPrice 변환, 그리고 tick spacing 정렬.
"""

import math
from fractions import Fraction
from typing import Tuple, Union

from ..constants import MAX_SQRT_RATIO, MAX_TICK, MIN_SQRT_RATIO, MIN_TICK, Q96, Q192
from ..exceptions import InvalidInputError
from .sqrt_price_math import get_amount0_delta, get_amount1_delta
from .tick_math import get_sqrt_ratio_at_tick, get_tick_at_sqrt_ratio, round_tick_to_spacing

# Pool이 표현할 수 있는 가격 범위 (token1/token0)
MIN_PRICE = Fraction(MIN_SQRT_RATIO * MIN_SQRT_RATIO, Q192)
MAX_PRICE = Fraction(MAX_SQRT_RATIO * MAX_SQRT_RATIO - 1, Q192)

PriceLike = Union[Fraction, int, float]


def encode_sqrt_ratio_x96(amount1: int, amount0: int) -> int:
    """amount1/amount0 비율의 sqrtPriceX96 (내림)

    sqrtPriceX96 = floor(sqrt((amount1 << 192) / amount0))
    """
    if amount0 <= 0 or amount1 < 0:
        raise InvalidInputError(f"유효하지 않은 비율: {amount1}/{amount0}")
    ratio_x192 = (amount1 << 192) // amount0
    return math.isqrt(ratio_x192)


def nearest_usable_tick(tick: int, tick_spacing: int) -> int:
    """tick spacing의 배수 중 가장 가까운 사용 가능한 틱

    정확히 중간이면 위쪽으로 반올림하고, 결과가 [MIN_TICK, MAX_TICK]을 벗어나면
    한 칸 안쪽으로 당깁니다.
    """
    if tick < MIN_TICK or tick > MAX_TICK:
        raise InvalidInputError(f"틱 범위 초과: {tick}")

    rounded = round_tick_to_spacing(tick, tick_spacing)
    if rounded < MIN_TICK:
        return rounded + tick_spacing
    if rounded > MAX_TICK:
        return rounded - tick_spacing
    return rounded


def tick_to_price_fraction(tick: int, invert: bool = False) -> Fraction:
    """tick → 정확한 원시 가격 (token1/token0, 최소 단위 기준)

    invert=True면 token0/token1 가격을 반환합니다.
    """
    sqrt_ratio_x96 = get_sqrt_ratio_at_tick(tick)
    ratio_x192 = sqrt_ratio_x96 * sqrt_ratio_x96
    if invert:
        return Fraction(Q192, ratio_x192)
    return Fraction(ratio_x192, Q192)


def price_to_closest_tick(price: Fraction, invert: bool = False) -> int:
    """가격 이하에서 가장 가까운 틱

    Args:
        price: 원시 가격 (invert=False면 token1/token0)
        invert: True면 price를 token0/token1로 해석

    Returns:
        tick_to_price_fraction(tick) <= price 를 만족하는 가장 큰 틱
        (invert=True면 부등호 방향이 반대)
    """
    price = Fraction(price)
    if price <= 0:
        raise InvalidInputError("가격은 양수여야 합니다")

    if invert:
        sqrt_ratio_x96 = encode_sqrt_ratio_x96(price.denominator, price.numerator)
    else:
        sqrt_ratio_x96 = encode_sqrt_ratio_x96(price.numerator, price.denominator)

    tick = get_tick_at_sqrt_ratio(sqrt_ratio_x96)
    if tick + 1 > MAX_TICK:
        return tick

    next_tick_price = tick_to_price_fraction(tick + 1, invert)
    if invert:
        if price <= next_tick_price:
            tick += 1
    elif price >= next_tick_price:
        tick += 1
    return tick



def price_to_sqrt_ratio_x96(price: PriceLike) -> int:
    """원시 가격(token1/token0) → sqrtPriceX96, Pool이 받을 수 있는 범위로 잘라냄"""
    price = Fraction(price)
    if price < 0:
        raise InvalidInputError(f"가격은 음수일 수 없습니다: {price}")
    sqrt_ratio_x96 = math.isqrt(price.numerator * Q192 // price.denominator)
    return min(max(sqrt_ratio_x96, MIN_SQRT_RATIO), MAX_SQRT_RATIO - 1)


def price_to_closest_usable_tick(price: PriceLike, tick_spacing: int, invert: bool = False) -> int:
    """가격에 가장 가까운 틱을 tick spacing에 맞춰 반환

    price_to_closest_tick과 달리 표현 가능한 범위를 벗어난 가격은
    MIN_TICK / MAX_TICK으로 잘라서 처리합니다.
    """
    price = Fraction(price)
    if price <= 0:
        raise InvalidInputError("가격은 양수여야 합니다")

    raw = 1 / price if invert else price
    if raw < MIN_PRICE:
        tick = MIN_TICK
    elif raw >= MAX_PRICE:
        tick = MAX_TICK
    else:
        tick = price_to_closest_tick(price, invert)
    return nearest_usable_tick(tick, tick_spacing)


def token0_price_to_ratio(price: PriceLike, tick_lower: int, tick_upper: int) -> Fraction:
    """가격(token1/token0)에서 범위 포지션 가치 중 token0이 차지하는 비율

    Returns:
        0 이상 1 이하의 비율. 가격이 범위 아래면 1, 범위 위면 0
    """
    if tick_upper <= tick_lower:
        raise InvalidInputError(f"tick_lower({tick_lower})는 tick_upper({tick_upper})보다 작아야 합니다")

    price = Fraction(price)
    sqrt_price_x96 = price_to_sqrt_ratio_x96(price)
    tick = get_tick_at_sqrt_ratio(sqrt_price_x96)
    if tick < tick_lower:
        return Fraction(1)
    if tick >= tick_upper:
        return Fraction(0)

    # 비율만 필요하므로 유동성은 임의의 큰 값
    liquidity = 2 << 96
    amount0 = get_amount0_delta(sqrt_price_x96, get_sqrt_ratio_at_tick(tick_upper), liquidity, False)
    amount1 = get_amount1_delta(get_sqrt_ratio_at_tick(tick_lower), sqrt_price_x96, liquidity, False)
    value0 = amount0 * price
    return value0 / (value0 + amount1)


def _check_ratio(token0_ratio: PriceLike) -> None:
    if not 0 <= token0_ratio <= 1:
        raise InvalidInputError(f"token0 비율은 0과 1 사이여야 합니다: {token0_ratio}")


def token0_ratio_to_price(token0_ratio: PriceLike, tick_lower: int, tick_upper: int) -> float:
    """token0_price_to_ratio의 역함수

    범위 [tick_lower, tick_upper]의 포지션에서 token0 가치 비율이 token0_ratio가 되는
    원시 가격(token1/token0). sqrt 가격에 대한 이차방정식의 양의 근을 사용합니다.
    """
    if tick_upper <= tick_lower:
        raise InvalidInputError(f"tick_lower({tick_lower})는 tick_upper({tick_upper})보다 작아야 합니다")
    _check_ratio(token0_ratio)
    if token0_ratio == 0:
        return float(tick_to_price_fraction(tick_upper))
    if token0_ratio == 1:
        return float(tick_to_price_fraction(tick_lower))

    lower = get_sqrt_ratio_at_tick(tick_lower) / Q96
    upper = get_sqrt_ratio_at_tick(tick_upper) / Q96
    r = float(token0_ratio)
    a = r - 1
    b = upper * (1 - 2 * r)
    c = r * lower * upper
    sqrt_price = (b + math.sqrt(b * b - 4 * a * c)) / (-2 * a)
    return sqrt_price * sqrt_price


def tick_range_from_width_and_ratio(width: int, tick_current: int, token0_ratio: PriceLike) -> Tuple[int, int]:
    """현재 틱에서 폭이 width이고 token0 가치 비율이 token0_ratio인 틱 범위

    Returns:
        (tick_lower, tick_upper), tick_upper - tick_lower == width
    """
    if width <= 0:
        raise InvalidInputError(f"범위 폭은 양수여야 합니다: {width}")
    _check_ratio(token0_ratio)
    if token0_ratio == 0:
        return tick_current - width, tick_current
    if token0_ratio == 1:
        return tick_current, tick_current + width

    price = float(tick_to_price_fraction(tick_current))
    a = float(token0_ratio)
    b = (1 - 2 * a) * math.sqrt(price)
    c = price * (a - 1) / math.sqrt(float(tick_to_price_fraction(width)))
    sqrt_price_lower = (math.sqrt(b * b - 4 * a * c) - b) / (2 * a)
    tick_lower = get_tick_at_sqrt_ratio(int(sqrt_price_lower * Q96))
    return tick_lower, tick_lower + width
