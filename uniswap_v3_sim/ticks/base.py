"""
Tick Data Provider - 초기화된 틱 탐색 인터페이스

풀의 스왑 루프는 이 인터페이스만 사용합니다. 구현체는 두 가지:
- TickListDataProvider: 정렬된 틱 목록 + 이진 탐색 (희소한 풀에 적합)
- TickBitmapDataProvider: 256틱 워드 비트맵 + bit scan (온체인과 같은 구조)

두 구현 모두 같은 질의에 대해 같은 결과를 내야 합니다.

References:
- Uniswap V3 Core: contracts/libraries/TickBitmap.sol
- Uniswap V3 SDK: entities/tickDataProvider.ts
"""

import copy
from abc import ABC, abstractmethod
from typing import Iterator, Optional, Tuple

from ..config import settings
from ..constants import MAX_TICK, MIN_TICK
from ..data.types import Tick
from ..exceptions import InvalidInputError, TickNotFoundError


class TickDataProvider(ABC):
    """틱 데이터 제공자

    시뮬레이션 시작 전에 모든 틱 데이터가 메모리에 있어야 합니다.
    스왑 도중 I/O를 하지 않습니다.
    """

    @abstractmethod
    def get_tick(self, tick: int) -> Tick:
        """틱 상태 조회. 초기화되지 않은 틱은 모든 필드가 0인 Tick"""

    @abstractmethod
    def next_initialized_tick_within_one_word(
        self,
        tick: int,
        tick_spacing: int,
        lte: bool
    ) -> Tuple[int, bool]:
        """같은 256틱 워드 안에서 다음 초기화된 틱

        Args:
            tick: 시작 틱
            tick_spacing: 풀의 틱 간격
            lte: True면 tick 이하(왼쪽), False면 tick 초과(오른쪽)에서 탐색

        Returns:
            (다음 틱, 초기화 여부). 워드 안에 없으면 워드 경계 틱과 False
        """

    @abstractmethod
    def update_tick(self, tick: Tick) -> None:
        """틱 상태 저장. liquidity_gross가 0이면 틱을 해제합니다"""

    @abstractmethod
    def initialized_ticks(self) -> Iterator[Tick]:
        """초기화된 틱을 오름차순으로 순회"""

    def tick_data(self, tick: int) -> Tuple[int, int, int, int]:
        """(liquidity_net, liquidity_gross, fee_growth_outside_0, fee_growth_outside_1)"""
        data = self.get_tick(tick)
        return (
            data.liquidity_net,
            data.liquidity_gross,
            data.fee_growth_outside_0_x128,
            data.fee_growth_outside_1_x128,
        )

    def next_initialized_tick(
        self,
        tick: int,
        tick_spacing: int,
        lte: bool,
        horizon_words: Optional[int] = None
    ) -> Tuple[int, bool]:
        """여러 워드에 걸친 다음 초기화된 틱 탐색

        빈 영역을 무한히 훑지 않도록 horizon_words개 워드까지만 탐색합니다.
        찾지 못하면 마지막으로 본 워드 경계(또는 MIN_TICK/MAX_TICK)와 False를 반환합니다.
        """
        if horizon_words is None:
            horizon_words = settings.TICK_SEARCH_HORIZON_WORDS
        if horizon_words <= 0:
            raise InvalidInputError(f"탐색 범위는 1워드 이상이어야 합니다: {horizon_words}")

        next_tick = tick
        for _ in range(horizon_words):
            next_tick, initialized = self.next_initialized_tick_within_one_word(tick, tick_spacing, lte)
            if initialized:
                return next_tick, True
            if lte and next_tick <= MIN_TICK:
                return MIN_TICK, False
            if not lte and next_tick >= MAX_TICK:
                return MAX_TICK, False
            tick = next_tick - 1 if lte else next_tick
        return next_tick, False

    def clone(self) -> "TickDataProvider":
        """독립적으로 변경 가능한 복사본"""
        return copy.deepcopy(self)


class NoTickDataProvider(TickDataProvider):
    """틱 데이터가 없는 제공자. 틱이 필요해지면 항상 실패합니다"""

    def get_tick(self, tick: int) -> Tick:
        raise TickNotFoundError("틱 데이터 제공자가 지정되지 않았습니다")

    def next_initialized_tick_within_one_word(self, tick: int, tick_spacing: int, lte: bool) -> Tuple[int, bool]:
        raise TickNotFoundError("틱 데이터 제공자가 지정되지 않았습니다")

    def update_tick(self, tick: Tick) -> None:
        raise TickNotFoundError("틱 데이터 제공자가 지정되지 않았습니다")

    def initialized_ticks(self) -> Iterator[Tick]:
        return iter(())


def validate_tick_spacing(tick_spacing: int) -> None:
    if tick_spacing <= 0:
        raise InvalidInputError(f"tick spacing은 양수여야 합니다: {tick_spacing}")
