"""
Tick List - 정렬된 틱 목록 기반 제공자

초기화된 틱만 오름차순으로 보관하고 이진 탐색으로 조회합니다.
워드 경계 의미론은 비트맵 구현과 동일합니다.

References:
- Uniswap V3 SDK: utils/tickList.ts, entities/tickListDataProvider.ts
"""

import bisect
from typing import Iterable, Iterator, List, Tuple

from ..data.types import Tick
from ..exceptions import InvalidTickListError
from .base import TickDataProvider, validate_tick_spacing


class TickListDataProvider(TickDataProvider):
    """정렬된 틱 목록 제공자

    사용법:
        provider = TickListDataProvider([Tick(-60, 10, 10), Tick(60, 10, -10)], 60)
        provider.next_initialized_tick_within_one_word(0, 60, lte=True)
    """

    def __init__(self, ticks: Iterable[Tick] = (), tick_spacing: int = 1):
        validate_tick_spacing(tick_spacing)
        self.tick_spacing = tick_spacing
        self._ticks: List[Tick] = [t for t in ticks if t.initialized]
        self._validate_list()
        self._indices: List[int] = [t.tick_idx for t in self._ticks]

    def _validate_list(self) -> None:
        """tick spacing 배수, 엄격한 오름차순, liquidity_net 합계 0"""
        for t in self._ticks:
            if t.tick_idx % self.tick_spacing != 0:
                raise InvalidTickListError(
                    f"틱 {t.tick_idx}이 tick spacing {self.tick_spacing}의 배수가 아닙니다"
                )
        for prev, cur in zip(self._ticks, self._ticks[1:]):
            if cur.tick_idx <= prev.tick_idx:
                raise InvalidTickListError(f"틱 목록이 정렬되지 않았습니다: {prev.tick_idx}, {cur.tick_idx}")
        net = sum(t.liquidity_net for t in self._ticks)
        if net != 0:
            raise InvalidTickListError(f"liquidity_net 합계가 0이 아닙니다: {net}")

    def __len__(self) -> int:
        return len(self._ticks)

    def get_tick(self, tick: int) -> Tick:
        i = bisect.bisect_left(self._indices, tick)
        if i < len(self._indices) and self._indices[i] == tick:
            return self._ticks[i]
        return Tick(tick_idx=tick)

    def update_tick(self, tick: Tick) -> None:
        if tick.tick_idx % self.tick_spacing != 0:
            raise InvalidTickListError(
                f"틱 {tick.tick_idx}이 tick spacing {self.tick_spacing}의 배수가 아닙니다"
            )
        i = bisect.bisect_left(self._indices, tick.tick_idx)
        exists = i < len(self._indices) and self._indices[i] == tick.tick_idx

        if tick.initialized:
            if exists:
                self._ticks[i] = tick
            else:
                self._ticks.insert(i, tick)
                self._indices.insert(i, tick.tick_idx)
        elif exists:
            del self._ticks[i]
            del self._indices[i]

    def initialized_ticks(self) -> Iterator[Tick]:
        return iter(list(self._ticks))

    def _next_initialized_tick(self, tick: int, lte: bool) -> Tick:
        """목록 전체에서 tick 이하(lte) 또는 초과인 가장 가까운 틱 (목록이 비어 있지 않아야 함)"""
        if lte:
            return self._ticks[bisect.bisect_right(self._indices, tick) - 1]
        return self._ticks[bisect.bisect_right(self._indices, tick)]

    def next_initialized_tick_within_one_word(
        self,
        tick: int,
        tick_spacing: int,
        lte: bool
    ) -> Tuple[int, bool]:
        validate_tick_spacing(tick_spacing)
        compressed = tick // tick_spacing

        if lte:
            word_pos = compressed >> 8
            minimum = (word_pos << 8) * tick_spacing
            if not self._ticks or tick < self._indices[0]:
                return minimum, False
            index = self._next_initialized_tick(tick, lte).tick_idx
            next_tick = max(minimum, index)
            return next_tick, next_tick == index

        word_pos = (compressed + 1) >> 8
        maximum = ((word_pos << 8) + 255) * tick_spacing
        if not self._ticks or tick >= self._indices[-1]:
            return maximum, False
        index = self._next_initialized_tick(tick, lte).tick_idx
        next_tick = min(maximum, index)
        return next_tick, next_tick == index
