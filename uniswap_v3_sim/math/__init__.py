"""
Math layer for Uniswap V3 Simulator

온체인 수준 정밀도의 수학 함수들:
- full_math: 512비트 중간값 mul_div, uint256 랩어라운드
- bit_math: 최상위/최하위 비트
- tick_math: Tick ↔ sqrtPriceX96 변환
- sqrt_price_math: 가격 이동과 토큰 변화량
- swap_math: 단일 구간 스왑
- liquidity_math: 유동성 계산
- fee_math: 백서 기반 수수료 계산
- convert: 정확한 가격(Fraction) 변환
"""

from .full_math import (
    mul_div,
    mul_div_rounding_up,
    div_rounding_up,
    wrapping_add,
    wrapping_sub,
)
from .bit_math import most_significant_bit, least_significant_bit
from .tick_math import (
    get_tick_at_sqrt_ratio,
    get_sqrt_ratio_at_tick,
    tick_to_price,
    price_to_tick,
    round_tick_to_spacing,
)
from .sqrt_price_math import (
    sqrt_price_x96_to_price,
    price_to_sqrt_price_x96,
    get_next_sqrt_price_from_input,
    get_next_sqrt_price_from_output,
    get_amount0_delta,
    get_amount1_delta,
)
from .swap_math import compute_swap_step
from .liquidity_math import (
    add_delta,
    get_liquidity_for_amounts,
    max_liquidity_for_amounts,
    get_amounts_for_liquidity,
)
from .fee_math import (
    fee_growth_inside,
    get_fee_growth_inside,
    get_tokens_owed,
    calculate_uncollected_fees,
    calculate_fee_growth_delta,
)
from .convert import (
    encode_sqrt_ratio_x96,
    nearest_usable_tick,
    tick_to_price_fraction,
    price_to_closest_tick,
    price_to_sqrt_ratio_x96,
    price_to_closest_usable_tick,
    token0_price_to_ratio,
    token0_ratio_to_price,
    tick_range_from_width_and_ratio,
)
