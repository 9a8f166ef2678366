"""
Data layer for Uniswap V3 Simulator

외부에서 조회한 데이터를 담는 값 타입 정의
"""

from .types import Token, TokenAmount, Tick, PoolSnapshot, PositionInfo
