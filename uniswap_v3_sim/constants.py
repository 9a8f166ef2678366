"""
Uniswap V3 상수 정의

온체인 수준 정밀도를 위한 상수들:
- Q96: sqrt price 인코딩에 사용 (2^96)
- Q128: fee growth 인코딩에 사용 (2^128)
- FEE_TIERS: 지원되는 수수료 티어
- TICK_SPACINGS: 각 수수료 티어별 틱 간격
- 고정폭 정수 경계값 (uint128, uint160, uint256, int128)
"""

from enum import IntEnum
from typing import Dict

# Fixed-point 인코딩 상수
Q96: int = 2 ** 96
Q128: int = 2 ** 128
Q192: int = 2 ** 192

# 수수료 분모 (pips = 1/1,000,000)
FEE_DENOMINATOR: int = 1_000_000

# 수수료 티어 (pips)
# 500 = 0.05%, 3000 = 0.30%, 10000 = 1.00%
FEE_TIERS: Dict[int, str] = {
    100: "0.01%",    # 1 bps
    500: "0.05%",    # 5 bps
    3000: "0.30%",   # 30 bps
    10000: "1.00%",  # 100 bps
}

# 각 수수료 티어별 틱 간격
TICK_SPACINGS: Dict[int, int] = {
    100: 1,
    500: 10,
    3000: 60,
    10000: 200,
}


class FeeAmount(IntEnum):
    """풀 생성 시 선택 가능한 수수료 티어"""
    LOWEST = 100
    LOW = 500
    MEDIUM = 3000
    HIGH = 10000

    @property
    def tick_spacing(self) -> int:
        return TICK_SPACINGS[int(self)]


# 틱 범위 상수
MIN_TICK: int = -887272
MAX_TICK: int = 887272

# getSqrtRatioAtTick(MIN_TICK), getSqrtRatioAtTick(MAX_TICK)
MIN_SQRT_RATIO: int = 4295128739
MAX_SQRT_RATIO: int = 1461446703485210103287273052203988822378723970342

# 고정폭 정수 최대값
UINT128_MAX: int = 2 ** 128 - 1
UINT160_MAX: int = 2 ** 160 - 1
UINT256_MAX: int = 2 ** 256 - 1
INT128_MIN: int = -(2 ** 127)
INT128_MAX: int = 2 ** 127 - 1
