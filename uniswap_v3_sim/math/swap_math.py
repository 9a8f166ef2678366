"""
Swap Math - 단일 가격 구간 스왑 계산

하나의 틱 구간 안에서 입력/출력 수량, 수수료, 다음 가격을 계산합니다.
amount_in + fee_amount는 절대 |amount_remaining|을 넘지 않습니다.

References:
- Uniswap V3 Core: contracts/libraries/SwapMath.sol
- 백서 Section 6.2.3: Swapping Within a Single Tick
"""

from typing import NamedTuple

from ..constants import FEE_DENOMINATOR
from ..exceptions import InvalidInputError
from .full_math import mul_div, mul_div_rounding_up
from .sqrt_price_math import (
    get_amount0_delta,
    get_amount1_delta,
    get_next_sqrt_price_from_input,
    get_next_sqrt_price_from_output,
)


class SwapStepResult(NamedTuple):
    """compute_swap_step 결과"""
    sqrt_ratio_next_x96: int  # 구간 스왑 후 가격 (목표 가격을 넘지 않음)
    amount_in: int  # 입력 수량 (수수료 제외)
    amount_out: int  # 출력 수량
    fee_amount: int  # 입력에서 떼어가는 수수료


def compute_swap_step(
    sqrt_ratio_current_x96: int,
    sqrt_ratio_target_x96: int,
    liquidity: int,
    amount_remaining: int,
    fee_pips: int
) -> SwapStepResult:
    """단일 구간 스왑 계산

    방향은 목표 가격과 현재 가격의 대소로 결정됩니다 (현재 >= 목표 이면 zeroForOne).
    amount_remaining이 양수면 exact input, 음수면 exact output.

    Args:
        sqrt_ratio_current_x96: 현재 sqrtPriceX96
        sqrt_ratio_target_x96: 넘을 수 없는 목표 sqrtPriceX96
        liquidity: 구간 내 활성 유동성
        amount_remaining: 남은 입력(+) 또는 출력(-) 수량
        fee_pips: 수수료 (1/1,000,000 단위)

    Returns:
        SwapStepResult(sqrt_ratio_next_x96, amount_in, amount_out, fee_amount)
    """
    if not 0 <= fee_pips < FEE_DENOMINATOR:
        raise InvalidInputError(f"fee_pips는 [0, {FEE_DENOMINATOR}) 범위여야 합니다: {fee_pips}")

    zero_for_one = sqrt_ratio_current_x96 >= sqrt_ratio_target_x96
    exact_in = amount_remaining >= 0
    fee_complement = FEE_DENOMINATOR - fee_pips

    amount_in = 0
    amount_out = 0

    if exact_in:
        # 목표 가격 도달 전 수수료 차감
        amount_remaining_less_fee = mul_div(amount_remaining, fee_complement, FEE_DENOMINATOR)
        if zero_for_one:
            amount_in = get_amount0_delta(sqrt_ratio_target_x96, sqrt_ratio_current_x96, liquidity, True)
        else:
            amount_in = get_amount1_delta(sqrt_ratio_current_x96, sqrt_ratio_target_x96, liquidity, True)

        if amount_remaining_less_fee >= amount_in:
            sqrt_ratio_next_x96 = sqrt_ratio_target_x96
        else:
            sqrt_ratio_next_x96 = get_next_sqrt_price_from_input(
                sqrt_ratio_current_x96, liquidity, amount_remaining_less_fee, zero_for_one
            )
    else:
        if zero_for_one:
            amount_out = get_amount1_delta(sqrt_ratio_target_x96, sqrt_ratio_current_x96, liquidity, False)
        else:
            amount_out = get_amount0_delta(sqrt_ratio_current_x96, sqrt_ratio_target_x96, liquidity, False)

        if -amount_remaining >= amount_out:
            sqrt_ratio_next_x96 = sqrt_ratio_target_x96
        else:
            sqrt_ratio_next_x96 = get_next_sqrt_price_from_output(
                sqrt_ratio_current_x96, liquidity, -amount_remaining, zero_for_one
            )

    reached_target = sqrt_ratio_target_x96 == sqrt_ratio_next_x96

    # 목표에 도달하지 못한 경우 실제 도달 가격 기준으로 재계산
    if zero_for_one:
        if not (reached_target and exact_in):
            amount_in = get_amount0_delta(sqrt_ratio_next_x96, sqrt_ratio_current_x96, liquidity, True)
        if not (reached_target and not exact_in):
            amount_out = get_amount1_delta(sqrt_ratio_next_x96, sqrt_ratio_current_x96, liquidity, False)
    else:
        if not (reached_target and exact_in):
            amount_in = get_amount1_delta(sqrt_ratio_current_x96, sqrt_ratio_next_x96, liquidity, True)
        if not (reached_target and not exact_in):
            amount_out = get_amount0_delta(sqrt_ratio_current_x96, sqrt_ratio_next_x96, liquidity, False)

    # exact output에서 요청량을 넘지 않도록 제한
    if not exact_in and amount_out > -amount_remaining:
        amount_out = -amount_remaining

    if exact_in and sqrt_ratio_next_x96 != sqrt_ratio_target_x96:
        # 남은 입력 전부 소진: 나머지는 수수료
        fee_amount = amount_remaining - amount_in
    else:
        fee_amount = mul_div_rounding_up(amount_in, fee_pips, fee_complement)

    return SwapStepResult(sqrt_ratio_next_x96, amount_in, amount_out, fee_amount)
