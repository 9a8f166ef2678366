"""
Liquidity Math - 유동성 계산

Uniswap V3의 집중화된 유동성(Concentrated Liquidity) 계산.
부호 있는 유동성 누산, 그리고 특정 가격 범위에서의 토큰 수량과 유동성 간의 변환.

References:
- Uniswap V3 Core: contracts/libraries/LiquidityMath.sol
- Uniswap V3 Periphery: contracts/libraries/LiquidityAmounts.sol
- 백서 Section 6.2.1: Concentrated Liquidity

핵심 공식:
    L = Δy / (√P_upper - √P_lower)  # token1 기준
    L = Δx / (1/√P_lower - 1/√P_upper)  # token0 기준
"""

from typing import Tuple

from ..constants import INT128_MAX, INT128_MIN, Q96, UINT128_MAX
from ..exceptions import (
    InvalidInputError,
    LiquidityOverflowError,
    LiquidityUnderflowError,
)
from .full_math import mul_div
from .sqrt_price_math import get_amount0_delta, get_amount1_delta


def add_delta(liquidity: int, delta: int) -> int:
    """부호 있는 유동성 변화량을 uint128 유동성에 더함

    Args:
        liquidity: 현재 유동성 (uint128)
        delta: 변화량 (int128)

    Returns:
        liquidity + delta

    Raises:
        LiquidityUnderflowError: 결과가 음수인 경우
        LiquidityOverflowError: 결과가 uint128을 초과하는 경우
    """
    if delta < INT128_MIN or delta > INT128_MAX:
        raise InvalidInputError(f"유동성 변화량이 int128 범위를 벗어났습니다: {delta}")

    result = liquidity + delta
    if result < 0:
        raise LiquidityUnderflowError(f"유동성 언더플로우: {liquidity} + ({delta})")
    if result > UINT128_MAX:
        raise LiquidityOverflowError(f"유동성 오버플로우: {liquidity} + {delta}")
    return result


def _to_uint128(value: int) -> int:
    if value > UINT128_MAX:
        raise LiquidityOverflowError(f"유동성이 uint128을 초과합니다: {value}")
    return value


def _sorted_range(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int) -> Tuple[int, int]:
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96
    if sqrt_ratio_a_x96 == sqrt_ratio_b_x96:
        raise InvalidInputError(f"가격 범위의 폭이 0입니다: {sqrt_ratio_a_x96}")
    return sqrt_ratio_a_x96, sqrt_ratio_b_x96


def get_liquidity_for_amount0(
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    amount0: int
) -> int:
    """amount0에서 유동성 계산

    주어진 token0 양으로 얻을 수 있는 최대 유동성.

    공식: L = Δx * √P_a * √P_b / (√P_b - √P_a)

    Args:
        sqrt_ratio_a_x96: 하한 sqrtPriceX96
        sqrt_ratio_b_x96: 상한 sqrtPriceX96
        amount0: token0 수량

    Returns:
        유동성
    """
    sqrt_ratio_a_x96, sqrt_ratio_b_x96 = _sorted_range(sqrt_ratio_a_x96, sqrt_ratio_b_x96)
    intermediate = mul_div(sqrt_ratio_a_x96, sqrt_ratio_b_x96, Q96)
    return _to_uint128(mul_div(amount0, intermediate, sqrt_ratio_b_x96 - sqrt_ratio_a_x96))


def get_liquidity_for_amount1(
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    amount1: int
) -> int:
    """amount1에서 유동성 계산

    공식: L = Δy / (√P_b - √P_a)
    """
    sqrt_ratio_a_x96, sqrt_ratio_b_x96 = _sorted_range(sqrt_ratio_a_x96, sqrt_ratio_b_x96)
    return _to_uint128(mul_div(amount1, Q96, sqrt_ratio_b_x96 - sqrt_ratio_a_x96))


def get_liquidity_for_amounts(
    sqrt_ratio_x96: int,
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    amount0: int,
    amount1: int
) -> int:
    """토큰 수량에서 유동성 계산 (Periphery LiquidityAmounts)

    현재 가격과 범위, 두 토큰 수량이 주어졌을 때
    민트 가능한 최대 유동성을 계산합니다.

    Returns:
        유동성 (두 제약 조건 중 작은 값)
    """
    sqrt_ratio_a_x96, sqrt_ratio_b_x96 = _sorted_range(sqrt_ratio_a_x96, sqrt_ratio_b_x96)

    if sqrt_ratio_x96 <= sqrt_ratio_a_x96:
        # 가격이 범위 아래: token0만 사용
        return get_liquidity_for_amount0(sqrt_ratio_a_x96, sqrt_ratio_b_x96, amount0)

    if sqrt_ratio_x96 < sqrt_ratio_b_x96:
        # 가격이 범위 내: 양쪽 토큰 사용, 작은 값 반환
        liquidity0 = get_liquidity_for_amount0(sqrt_ratio_x96, sqrt_ratio_b_x96, amount0)
        liquidity1 = get_liquidity_for_amount1(sqrt_ratio_a_x96, sqrt_ratio_x96, amount1)
        return min(liquidity0, liquidity1)

    # 가격이 범위 위: token1만 사용
    return get_liquidity_for_amount1(sqrt_ratio_a_x96, sqrt_ratio_b_x96, amount1)


def _max_liquidity_for_amount0_precise(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, amount0: int) -> int:
    numerator = amount0 * sqrt_ratio_a_x96 * sqrt_ratio_b_x96
    denominator = Q96 * (sqrt_ratio_b_x96 - sqrt_ratio_a_x96)
    return numerator // denominator


def _max_liquidity_for_amount0_imprecise(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, amount0: int) -> int:
    intermediate = sqrt_ratio_a_x96 * sqrt_ratio_b_x96 // Q96
    return amount0 * intermediate // (sqrt_ratio_b_x96 - sqrt_ratio_a_x96)


def _max_liquidity_for_amount1(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, amount1: int) -> int:
    return amount1 * Q96 // (sqrt_ratio_b_x96 - sqrt_ratio_a_x96)


def max_liquidity_for_amounts(
    sqrt_ratio_current_x96: int,
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    amount0: int,
    amount1: int,
    use_full_precision: bool = True
) -> int:
    """주어진 토큰 수량으로 받을 수 있는 최대 유동성 (SDK maxLiquidityForAmounts)

    use_full_precision=False면 온체인 Periphery와 같은 부정확한 중간 반올림을 재현합니다.
    결과는 uint128 범위를 검사하지 않습니다.
    """
    sqrt_ratio_a_x96, sqrt_ratio_b_x96 = _sorted_range(sqrt_ratio_a_x96, sqrt_ratio_b_x96)
    for_amount0 = (
        _max_liquidity_for_amount0_precise if use_full_precision
        else _max_liquidity_for_amount0_imprecise
    )

    if sqrt_ratio_current_x96 <= sqrt_ratio_a_x96:
        return for_amount0(sqrt_ratio_a_x96, sqrt_ratio_b_x96, amount0)
    if sqrt_ratio_current_x96 < sqrt_ratio_b_x96:
        liquidity0 = for_amount0(sqrt_ratio_current_x96, sqrt_ratio_b_x96, amount0)
        liquidity1 = _max_liquidity_for_amount1(sqrt_ratio_a_x96, sqrt_ratio_current_x96, amount1)
        return min(liquidity0, liquidity1)
    return _max_liquidity_for_amount1(sqrt_ratio_a_x96, sqrt_ratio_b_x96, amount1)


def get_amounts_for_liquidity(
    sqrt_ratio_x96: int,
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    liquidity: int
) -> Tuple[int, int]:
    """유동성에서 토큰 수량 계산

    현재 가격과 범위, 유동성이 주어졌을 때
    포지션이 보유한 토큰 수량을 계산합니다 (내림).

    Returns:
        (amount0, amount1) 튜플
    """
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96

    if sqrt_ratio_x96 <= sqrt_ratio_a_x96:
        # 가격이 범위 아래: token0만 보유
        return get_amount0_delta(sqrt_ratio_a_x96, sqrt_ratio_b_x96, liquidity, False), 0

    if sqrt_ratio_x96 < sqrt_ratio_b_x96:
        # 가격이 범위 내: 양쪽 토큰 보유
        amount0 = get_amount0_delta(sqrt_ratio_x96, sqrt_ratio_b_x96, liquidity, False)
        amount1 = get_amount1_delta(sqrt_ratio_a_x96, sqrt_ratio_x96, liquidity, False)
        return amount0, amount1

    # 가격이 범위 위: token1만 보유
    return 0, get_amount1_delta(sqrt_ratio_a_x96, sqrt_ratio_b_x96, liquidity, False)
