"""
Sqrt Price Math - sqrtPriceX96 관련 계산

Uniswap V3의 가격은 sqrtPriceX96 형식으로 저장됩니다.
sqrtPriceX96 = sqrt(price) * 2^96

토큰 수량이 주어졌을 때 다음 sqrtPrice, 그리고 두 sqrtPrice 사이를 이동하는 데
필요한 토큰 수량을 계산합니다. 반올림 방향은 항상 풀에 유리한 쪽입니다.

References:
- Uniswap V3 Core: contracts/libraries/SqrtPriceMath.sol
"""

import math

from ..constants import Q96, UINT160_MAX, UINT256_MAX
from ..exceptions import (
    InsufficientLiquidityError,
    InvalidInputError,
    MathOverflowError,
)
from .full_math import div_rounding_up, mul_div, mul_div_rounding_up


def sqrt_price_x96_to_price(
    sqrt_price_x96: int,
    decimal0: int = 18,
    decimal1: int = 18
) -> float:
    """sqrtPriceX96을 human-readable 가격으로 변환

    가격 = (sqrtPriceX96 / 2^96)^2 / 10^(decimal1 - decimal0)

    Args:
        sqrt_price_x96: sqrtPriceX96 값
        decimal0: token0 소수점 자릿수
        decimal1: token1 소수점 자릿수

    Returns:
        가격 (token1/token0 기준, human-readable)
    """
    sqrt_price = sqrt_price_x96 / Q96
    price_raw = sqrt_price ** 2

    decimal_adjustment = 10 ** (decimal1 - decimal0)
    return price_raw / decimal_adjustment


def price_to_sqrt_price_x96(
    price: float,
    decimal0: int = 18,
    decimal1: int = 18
) -> int:
    """Human-readable 가격을 sqrtPriceX96으로 변환 (근사, float)

    sqrtPriceX96 = sqrt(price * 10^(decimal1 - decimal0)) * 2^96
    """
    if price <= 0:
        raise InvalidInputError("가격은 양수여야 합니다")

    adjusted_price = price * (10 ** (decimal1 - decimal0))
    return int(math.sqrt(adjusted_price) * Q96)


def _to_uint160(value: int) -> int:
    if value > UINT160_MAX:
        raise MathOverflowError(f"sqrtPriceX96가 uint160을 초과합니다: {value}")
    return value


def get_next_sqrt_price_from_amount0_rounding_up(
    sqrt_price_x96: int,
    liquidity: int,
    amount: int,
    add: bool
) -> int:
    """amount0 변화에 따른 다음 sqrtPriceX96 계산 (올림)

    공식: √P' = L·√P / (L ± Δx·√P)

    가격을 충분히 움직이지 못하는 쪽으로 항상 올림합니다. uint256에서
    amount * √P가 넘치면 L / (L/√P ± Δx) 형태로 계산합니다.

    Args:
        sqrt_price_x96: 현재 sqrtPriceX96
        liquidity: 유동성
        amount: amount0 변화량
        add: True면 추가, False면 제거

    Returns:
        새로운 sqrtPriceX96
    """
    if amount == 0:
        return sqrt_price_x96

    numerator1 = liquidity << 96
    product = amount * sqrt_price_x96

    if add:
        if product <= UINT256_MAX:
            denominator = numerator1 + product
            if denominator <= UINT256_MAX:
                return _to_uint160(mul_div_rounding_up(numerator1, sqrt_price_x96, denominator))

        denominator = (numerator1 // sqrt_price_x96) + amount
        if denominator > UINT256_MAX:
            raise MathOverflowError("amount0 추가 시 분모가 uint256을 초과합니다")
        return _to_uint160(div_rounding_up(numerator1, denominator))

    if product > UINT256_MAX or numerator1 <= product:
        raise InsufficientLiquidityError(
            f"유동성 {liquidity}으로 amount0 {amount}을 제거할 수 없습니다"
        )
    denominator = numerator1 - product
    return _to_uint160(mul_div_rounding_up(numerator1, sqrt_price_x96, denominator))


def get_next_sqrt_price_from_amount1_rounding_down(
    sqrt_price_x96: int,
    liquidity: int,
    amount: int,
    add: bool
) -> int:
    """amount1 변화에 따른 다음 sqrtPriceX96 계산 (내림)

    공식: √P' = √P ± Δy / L

    Args:
        sqrt_price_x96: 현재 sqrtPriceX96
        liquidity: 유동성
        amount: amount1 변화량
        add: True면 추가, False면 제거

    Returns:
        새로운 sqrtPriceX96
    """
    if add:
        quotient = mul_div(amount, Q96, liquidity)
        return _to_uint160(sqrt_price_x96 + quotient)

    quotient = mul_div_rounding_up(amount, Q96, liquidity)
    if sqrt_price_x96 <= quotient:
        raise InsufficientLiquidityError(
            f"유동성 {liquidity}으로 amount1 {amount}을 제거할 수 없습니다"
        )
    return sqrt_price_x96 - quotient


def get_next_sqrt_price_from_input(
    sqrt_price_x96: int,
    liquidity: int,
    amount_in: int,
    zero_for_one: bool
) -> int:
    """입력 수량으로 도달하는 다음 sqrtPriceX96

    목표 가격을 넘지 않도록 반올림합니다.

    Raises:
        InvalidInputError: sqrt_price_x96이 0인 경우
        InsufficientLiquidityError: 유동성이 0인 경우
    """
    if sqrt_price_x96 <= 0:
        raise InvalidInputError(f"sqrtPriceX96은 양수여야 합니다: {sqrt_price_x96}")
    if liquidity <= 0:
        raise InsufficientLiquidityError("유동성이 0인 구간에서는 가격을 계산할 수 없습니다")

    if zero_for_one:
        return get_next_sqrt_price_from_amount0_rounding_up(sqrt_price_x96, liquidity, amount_in, True)
    return get_next_sqrt_price_from_amount1_rounding_down(sqrt_price_x96, liquidity, amount_in, True)


def get_next_sqrt_price_from_output(
    sqrt_price_x96: int,
    liquidity: int,
    amount_out: int,
    zero_for_one: bool
) -> int:
    """출력 수량으로 도달하는 다음 sqrtPriceX96

    목표 가격을 지나치도록 반올림합니다.

    Raises:
        InvalidInputError: sqrt_price_x96이 0인 경우
        InsufficientLiquidityError: 유동성이 0이거나 출력이 보유량을 초과하는 경우
    """
    if sqrt_price_x96 <= 0:
        raise InvalidInputError(f"sqrtPriceX96은 양수여야 합니다: {sqrt_price_x96}")
    if liquidity <= 0:
        raise InsufficientLiquidityError("유동성이 0인 구간에서는 가격을 계산할 수 없습니다")

    if zero_for_one:
        return get_next_sqrt_price_from_amount1_rounding_down(sqrt_price_x96, liquidity, amount_out, False)
    return get_next_sqrt_price_from_amount0_rounding_up(sqrt_price_x96, liquidity, amount_out, False)


def get_amount0_delta(
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    liquidity: int,
    round_up: bool = True
) -> int:
    """두 가격 사이의 amount0 변화량

    공식: Δx = L * (√P_b - √P_a) / (√P_a * √P_b)

    Args:
        sqrt_ratio_a_x96: sqrtPriceX96 (순서 무관)
        sqrt_ratio_b_x96: sqrtPriceX96 (순서 무관)
        liquidity: 유동성 (uint128)
        round_up: True면 올림, False면 내림

    Returns:
        amount0 (token0 수량, 최소 단위)
    """
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96

    if sqrt_ratio_a_x96 <= 0:
        raise InvalidInputError(f"sqrtPriceX96은 양수여야 합니다: {sqrt_ratio_a_x96}")

    numerator1 = liquidity << 96
    numerator2 = sqrt_ratio_b_x96 - sqrt_ratio_a_x96

    if round_up:
        return div_rounding_up(
            mul_div_rounding_up(numerator1, numerator2, sqrt_ratio_b_x96),
            sqrt_ratio_a_x96
        )
    return mul_div(numerator1, numerator2, sqrt_ratio_b_x96) // sqrt_ratio_a_x96


def get_amount1_delta(
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    liquidity: int,
    round_up: bool = True
) -> int:
    """두 가격 사이의 amount1 변화량

    공식: Δy = L * (√P_b - √P_a)
    """
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96

    if round_up:
        return mul_div_rounding_up(liquidity, sqrt_ratio_b_x96 - sqrt_ratio_a_x96, Q96)
    return mul_div(liquidity, sqrt_ratio_b_x96 - sqrt_ratio_a_x96, Q96)


def get_amount0_delta_signed(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, liquidity: int) -> int:
    """부호 있는 유동성 변화에 대한 amount0

    유동성 추가(양수)는 올림, 제거(음수)는 내림 후 음수로 반환합니다.
    같은 유동성을 추가했다가 제거해도 LP가 반올림으로 이득을 보지 않습니다.
    """
    if liquidity < 0:
        return -get_amount0_delta(sqrt_ratio_a_x96, sqrt_ratio_b_x96, -liquidity, False)
    return get_amount0_delta(sqrt_ratio_a_x96, sqrt_ratio_b_x96, liquidity, True)


def get_amount1_delta_signed(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, liquidity: int) -> int:
    """부호 있는 유동성 변화에 대한 amount1 (get_amount0_delta_signed 참조)"""
    if liquidity < 0:
        return -get_amount1_delta(sqrt_ratio_a_x96, sqrt_ratio_b_x96, -liquidity, False)
    return get_amount1_delta(sqrt_ratio_a_x96, sqrt_ratio_b_x96, liquidity, True)
