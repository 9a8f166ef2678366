"""
Liquidity Analysis - 유동성 분포와 스왑 경로의 표 형태 뷰

시뮬레이션 결과를 pandas DataFrame으로 정리합니다. 계산 자체는 정수 연산 모듈이 하고,
여기서는 열 구성과 사람이 읽을 수 있는 가격(float) 변환만 담당합니다.
"""

from dataclasses import asdict
from typing import List

import numpy as np
import pandas as pd

from ..entities.pool import Pool, SwapResult
from ..exceptions import InvalidInputError
from ..math.liquidity_math import get_amounts_for_liquidity
from ..math.sqrt_price_math import sqrt_price_x96_to_price
from ..math.tick_math import get_sqrt_ratio_at_tick, tick_to_price

LIQUIDITY_COLUMNS = [
    "tick_lower", "tick_upper", "liquidity",
    "price_lower", "price_upper", "amount0", "amount1", "active",
]


def liquidity_distribution(pool: Pool, tick_lower: int, tick_upper: int) -> pd.DataFrame:
    """[tick_lower, tick_upper) 구간을 초기화된 틱으로 나눈 유동성 분포

    각 행은 활성 유동성이 일정한 한 구간입니다. liquidity는 가장 낮은 틱부터
    liquidity_net을 누적해 구하므로 틱 제공자에 풀의 모든 초기화된 틱이 있어야 합니다.

    Args:
        pool: 대상 풀
        tick_lower: 분석 하한 틱
        tick_upper: 분석 상한 틱

    Returns:
        LIQUIDITY_COLUMNS 열을 가진 DataFrame. amount0/amount1은 현재 가격에서
        그 구간에 묶여 있는 토큰 수량(최소 단위, 내림)
    """
    if tick_lower >= tick_upper:
        raise InvalidInputError(f"tick_lower({tick_lower})는 tick_upper({tick_upper})보다 작아야 합니다")

    ticks = pd.DataFrame(
        [(t.tick_idx, t.liquidity_net) for t in pool.ticks.initialized_ticks()],
        columns=["tick_idx", "liquidity_net"],
    )
    ticks["liquidity"] = ticks["liquidity_net"].cumsum()

    boundaries = sorted(
        {tick_lower, tick_upper}
        | {int(t) for t in ticks["tick_idx"] if tick_lower < t < tick_upper}
    )

    tick_indices = ticks["tick_idx"].to_numpy(dtype=np.int64)
    # 구간 하한 이하의 마지막 초기화된 틱 위치 (-1이면 아래에 틱이 없음)
    positions = np.searchsorted(tick_indices, boundaries[:-1], side="right") - 1

    decimals0 = pool.token0.decimals
    decimals1 = pool.token1.decimals
    rows = []
    for lower, upper, pos in zip(boundaries, boundaries[1:], positions):
        liquidity = int(ticks["liquidity"].iloc[pos]) if pos >= 0 else 0
        amount0, amount1 = get_amounts_for_liquidity(
            pool.sqrt_price_x96,
            get_sqrt_ratio_at_tick(lower),
            get_sqrt_ratio_at_tick(upper),
            liquidity,
        )
        rows.append({
            "tick_lower": lower,
            "tick_upper": upper,
            "liquidity": liquidity,
            "price_lower": tick_to_price(lower, decimals0, decimals1),
            "price_upper": tick_to_price(upper, decimals0, decimals1),
            "amount0": amount0,
            "amount1": amount1,
            "active": lower <= pool.tick_current < upper,
        })

    return pd.DataFrame(rows, columns=LIQUIDITY_COLUMNS)


def swap_steps_frame(result: SwapResult, decimals0: int = 18, decimals1: int = 18) -> pd.DataFrame:
    """스왑 결과의 구간별 기록

    sqrtPriceX96 열 외에 사람이 읽을 수 있는 token0 가격(price_start, price_end)을 추가합니다.
    """
    records: List[dict] = [asdict(step) for step in result.steps]
    frame = pd.DataFrame(records)
    if frame.empty:
        return frame

    frame["price_start"] = frame["sqrt_price_start_x96"].map(
        lambda s: sqrt_price_x96_to_price(int(s), decimals0, decimals1)
    )
    frame["price_end"] = frame["sqrt_price_next_x96"].map(
        lambda s: sqrt_price_x96_to_price(int(s), decimals0, decimals1)
    )
    frame["cumulative_amount_in"] = (frame["amount_in"] + frame["fee_amount"]).cumsum()
    frame["cumulative_amount_out"] = frame["amount_out"].cumsum()
    return frame
