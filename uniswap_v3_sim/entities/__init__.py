"""
Entity layer for Uniswap V3 Simulator

- pool: 스왑/mint/burn 상태 전이
- position: 포지션 토큰 수량과 수수료
- route, trade: 멀티홉 경로와 슬리피지 경계
"""

from .pool import Pool, SwapResult, SwapStep
from .position import (
    Position,
    get_position_at_price,
    get_rebalanced_position,
    get_rebalanced_position_at_price,
)
from .route import Route
from .trade import Trade, TradeType, Swap
