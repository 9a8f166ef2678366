"""
Uniswap V3 Concentrated Liquidity Simulator

온체인과 비트 단위로 같은 정밀도로 Uniswap V3 풀의 스왑, 포지션, 멀티홉 거래를
오프체인에서 시뮬레이션하는 라이브러리.
백서 Section 6의 상태 전이와 Core 컨트랙트의 고정소수점 연산을 그대로 재현.
"""

import logging

__version__ = "0.1.0"
__author__ = "Zekiya"

from .constants import Q96, Q128, FEE_TIERS, TICK_SPACINGS, FeeAmount, MIN_TICK, MAX_TICK
from .exceptions import UniswapV3SimError
from .data.types import Token, TokenAmount, Tick
from .entities import Pool, Position, Route, Trade, TradeType
from .ticks import TickListDataProvider, TickBitmapDataProvider

logging.getLogger(__name__).addHandler(logging.NullHandler())
