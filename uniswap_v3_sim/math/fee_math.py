"""
Fee Math - 백서 기반 수수료 계산

Uniswap V3 백서 Section 6.3, 6.4의 공식을 정확하게 구현.
모든 fee growth 값은 uint256 카운터이며 포화되지 않고 순환합니다.

References:
- 백서 Section 6.3: Tick-Indexed State (feeGrowthOutside)
- 백서 Section 6.4.1: Position-Indexed State (uncollected fees)
- Uniswap V3 Core: contracts/libraries/Tick.sol (getFeeGrowthInside)
- Uniswap V3 Core: contracts/libraries/Position.sol (update)

핵심 공식:
    f_a(i) = f_g - f_o(i)  if i_c >= i else f_o(i)     # 틱 i 위 수수료
    f_b(i) = f_o(i)        if i_c >= i else f_g - f_o(i) # 틱 i 아래 수수료
    f_r = f_g - f_b(i_l) - f_a(i_u)                     # 범위 내 수수료
    f_u = l × (f_r(t_1) - f_r(t_0)) / 2^128             # 미수령 수수료
"""

from typing import NamedTuple, Tuple

from ..constants import Q128
from .full_math import mul_div, wrapping_sub


class FeeCalculationResult(NamedTuple):
    """수수료 계산 결과"""
    uncollected_fees_0: int  # token0 미수령 수수료 (최소 단위)
    uncollected_fees_1: int  # token1 미수령 수수료 (최소 단위)
    fee_growth_inside_0: int  # 현재 범위 내 fee growth token0
    fee_growth_inside_1: int  # 현재 범위 내 fee growth token1


def fee_growth_above(
    tick_idx: int,
    current_tick: int,
    fee_growth_global: int,
    fee_growth_outside: int
) -> int:
    """틱 위에서 발생한 수수료 성장률 (f_a)

    백서 Section 6.3 공식:
        f_a(i) = f_g - f_o(i)  if i_c >= i
        f_a(i) = f_o(i)        if i_c < i
    """
    if current_tick >= tick_idx:
        return wrapping_sub(fee_growth_global, fee_growth_outside)
    return fee_growth_outside


def fee_growth_below(
    tick_idx: int,
    current_tick: int,
    fee_growth_global: int,
    fee_growth_outside: int
) -> int:
    """틱 아래에서 발생한 수수료 성장률 (f_b)

    백서 Section 6.3 공식:
        f_b(i) = f_o(i)        if i_c >= i
        f_b(i) = f_g - f_o(i)  if i_c < i
    """
    if current_tick >= tick_idx:
        return fee_growth_outside
    return wrapping_sub(fee_growth_global, fee_growth_outside)


def fee_growth_inside(
    tick_lower: int,
    tick_upper: int,
    current_tick: int,
    fee_growth_global: int,
    fee_growth_outside_lower: int,
    fee_growth_outside_upper: int
) -> int:
    """범위 내 fee growth 계산 (f_r)

    백서 Section 6.3 공식:
        f_r = f_g - f_b(i_l) - f_a(i_u)

    Solidity unchecked 블록처럼 각 뺄셈은 2^256에서 랩어라운드됩니다.

    Args:
        tick_lower: 하한 틱 (i_l)
        tick_upper: 상한 틱 (i_u)
        current_tick: 현재 틱 (i_c)
        fee_growth_global: 전역 fee growth (f_g)
        fee_growth_outside_lower: 하한 틱의 fee growth outside (f_o(i_l))
        fee_growth_outside_upper: 상한 틱의 fee growth outside (f_o(i_u))

    Returns:
        범위 내 fee growth (f_r)
    """
    f_b = fee_growth_below(tick_lower, current_tick, fee_growth_global, fee_growth_outside_lower)
    f_a = fee_growth_above(tick_upper, current_tick, fee_growth_global, fee_growth_outside_upper)
    return wrapping_sub(wrapping_sub(fee_growth_global, f_b), f_a)


def get_fee_growth_inside(
    lower_outside: Tuple[int, int],
    upper_outside: Tuple[int, int],
    tick_lower: int,
    tick_upper: int,
    tick_current: int,
    fee_growth_global_0_x128: int,
    fee_growth_global_1_x128: int
) -> Tuple[int, int]:
    """두 토큰의 범위 내 fee growth

    Args:
        lower_outside: 하한 틱의 (f_o,0, f_o,1)
        upper_outside: 상한 틱의 (f_o,0, f_o,1)

    Returns:
        (fee_growth_inside_0_x128, fee_growth_inside_1_x128)
    """
    inside_0 = fee_growth_inside(
        tick_lower, tick_upper, tick_current,
        fee_growth_global_0_x128, lower_outside[0], upper_outside[0]
    )
    inside_1 = fee_growth_inside(
        tick_lower, tick_upper, tick_current,
        fee_growth_global_1_x128, lower_outside[1], upper_outside[1]
    )
    return inside_0, inside_1


def calculate_fee_growth_delta(fee_growth_current: int, fee_growth_previous: int) -> int:
    """두 시점 간 fee growth 변화량 (uint256 랩어라운드)"""
    return wrapping_sub(fee_growth_current, fee_growth_previous)


def get_tokens_owed(
    fee_growth_inside_0_last_x128: int,
    fee_growth_inside_1_last_x128: int,
    liquidity: int,
    fee_growth_inside_0_x128: int,
    fee_growth_inside_1_x128: int
) -> Tuple[int, int]:
    """마지막 갱신 이후 포지션이 번 수수료 (f_u)

    백서 Section 6.4.1 공식:
        f_u = l × (f_r(t_1) - f_r(t_0)) / 2^128

    Returns:
        (tokens_owed_0, tokens_owed_1) 최소 단위
    """
    tokens_owed_0 = mul_div(
        calculate_fee_growth_delta(fee_growth_inside_0_x128, fee_growth_inside_0_last_x128),
        liquidity,
        Q128
    )
    tokens_owed_1 = mul_div(
        calculate_fee_growth_delta(fee_growth_inside_1_x128, fee_growth_inside_1_last_x128),
        liquidity,
        Q128
    )
    return tokens_owed_0, tokens_owed_1


def calculate_uncollected_fees(
    liquidity: int,
    tick_lower: int,
    tick_upper: int,
    current_tick: int,
    fee_growth_global: Tuple[int, int],
    lower_outside: Tuple[int, int],
    upper_outside: Tuple[int, int],
    fee_growth_inside_last: Tuple[int, int]
) -> FeeCalculationResult:
    """두 토큰의 미수령 수수료 계산

    백서 Section 6.3, 6.4의 전체 수수료 계산 파이프라인.

    Args:
        liquidity: 포지션 유동성 (l)
        tick_lower: 하한 틱 (i_l)
        tick_upper: 상한 틱 (i_u)
        current_tick: 현재 틱 (i_c)
        fee_growth_global: (f_g,0, f_g,1)
        lower_outside: 하한 틱의 (f_o,0(i_l), f_o,1(i_l))
        upper_outside: 상한 틱의 (f_o,0(i_u), f_o,1(i_u))
        fee_growth_inside_last: 마지막 갱신 시점의 (f_r,0(t_0), f_r,1(t_0))

    Returns:
        FeeCalculationResult: 미수령 수수료 및 현재 fee growth inside
    """
    # Step 1: 현재 범위 내 fee growth 계산 (f_r(t_1))
    inside_0, inside_1 = get_fee_growth_inside(
        lower_outside, upper_outside,
        tick_lower, tick_upper, current_tick,
        fee_growth_global[0], fee_growth_global[1]
    )

    # Step 2: 미수령 수수료 계산 (f_u)
    owed_0, owed_1 = get_tokens_owed(
        fee_growth_inside_last[0], fee_growth_inside_last[1],
        liquidity,
        inside_0, inside_1
    )

    return FeeCalculationResult(
        uncollected_fees_0=owed_0,
        uncollected_fees_1=owed_1,
        fee_growth_inside_0=inside_0,
        fee_growth_inside_1=inside_1
    )
