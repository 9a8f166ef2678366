"""
Tick index layer for Uniswap V3 Simulator

다음 초기화된 틱을 찾는 두 가지 구현:
- tick_list: 정렬된 목록 + 이진 탐색
- tick_bitmap: 256틱 워드 비트맵
"""

from .base import TickDataProvider, NoTickDataProvider
from .tick_list import TickListDataProvider
from .tick_bitmap import TickBitmapDataProvider
