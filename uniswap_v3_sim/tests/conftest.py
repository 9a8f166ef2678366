"""
공통 테스트 fixture

토큰, 풀 생성 헬퍼, 시드가 고정된 난수 생성기.
"""

import random

import pytest

from ..constants import MAX_TICK, MIN_TICK, FeeAmount, Q96
from ..data.types import Token
from ..entities.pool import Pool
from ..math.convert import nearest_usable_tick


@pytest.fixture
def token0():
    return Token(id="0x0000000000000000000000000000000000000001", symbol="T0", name="Token 0", decimals=18)


@pytest.fixture
def token1():
    return Token(id="0x0000000000000000000000000000000000000002", symbol="T1", name="Token 1", decimals=18)


@pytest.fixture
def token2():
    return Token(id="0x0000000000000000000000000000000000000003", symbol="T2", name="Token 2", decimals=18)


@pytest.fixture
def token3():
    return Token(id="0x0000000000000000000000000000000000000004", symbol="T3", name="Token 3", decimals=18)


@pytest.fixture
def rng():
    return random.Random(20240601)


@pytest.fixture
def pool_factory():
    """Pool 생성 헬퍼

    positions의 각 (tick_lower, tick_upper, liquidity)를 mint해서 유동성을 채웁니다.
    tick_lower/tick_upper가 None이면 전체 범위를 사용합니다.
    """

    def make(token_a, token_b, fee=FeeAmount.MEDIUM, sqrt_price_x96=Q96,
             positions=((None, None, 10 ** 18),), ticks=None):
        pool = Pool(token_a, token_b, fee, sqrt_price_x96, 0, ticks=ticks)
        for tick_lower, tick_upper, liquidity in positions:
            if tick_lower is None:
                tick_lower = nearest_usable_tick(MIN_TICK, pool.tick_spacing)
            if tick_upper is None:
                tick_upper = nearest_usable_tick(MAX_TICK, pool.tick_spacing)
            pool.mint(tick_lower, tick_upper, liquidity)
        return pool

    return make
