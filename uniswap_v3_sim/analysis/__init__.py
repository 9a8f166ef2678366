"""
Analysis layer for Uniswap V3 Simulator

pandas 기반 표 형태 뷰:
- liquidity_distribution: 틱 구간별 활성 유동성과 토큰 수량
- swap_steps_frame: 스왑 루프의 구간별 기록
"""

from .liquidity import liquidity_distribution, swap_steps_frame
