"""
Tick Bitmap - 256틱 워드 비트맵 기반 제공자

압축된 틱(tick // tick_spacing)의 초기화 여부를 워드당 256비트 마스크로 저장합니다.
워드 위치는 compressed >> 8, 비트 위치는 compressed % 256.

References:
- Uniswap V3 Core: contracts/libraries/TickBitmap.sol
"""

from typing import Dict, Iterable, Iterator, Tuple

from ..constants import UINT256_MAX
from ..data.types import Tick
from ..exceptions import InvalidInputError
from ..math.bit_math import least_significant_bit, most_significant_bit
from .base import TickDataProvider, validate_tick_spacing


def position(compressed: int) -> Tuple[int, int]:
    """압축 틱 → (워드 위치, 비트 위치)"""
    return compressed >> 8, compressed & 0xFF


class TickBitmapDataProvider(TickDataProvider):
    """비트맵 제공자

    사용법:
        provider = TickBitmapDataProvider(60, [Tick(-60, 10, 10), Tick(60, 10, -10)])
        provider.next_initialized_tick_within_one_word(0, 60, lte=False)
    """

    def __init__(self, tick_spacing: int, ticks: Iterable[Tick] = ()):
        validate_tick_spacing(tick_spacing)
        self.tick_spacing = tick_spacing
        self._bitmap: Dict[int, int] = {}
        self._ticks: Dict[int, Tick] = {}
        for t in ticks:
            self.update_tick(t)

    def _compress(self, tick: int) -> int:
        if tick % self.tick_spacing != 0:
            raise InvalidInputError(f"틱 {tick}이 tick spacing {self.tick_spacing}의 배수가 아닙니다")
        return tick // self.tick_spacing

    def get_word(self, word_pos: int) -> int:
        """워드 위치의 256비트 마스크 (없으면 0)"""
        return self._bitmap.get(word_pos, 0)

    def flip_tick(self, tick: int) -> None:
        """틱의 초기화 비트를 반전"""
        word_pos, bit_pos = position(self._compress(tick))
        word = self.get_word(word_pos) ^ (1 << bit_pos)
        if word:
            self._bitmap[word_pos] = word
        else:
            self._bitmap.pop(word_pos, None)

    def get_tick(self, tick: int) -> Tick:
        existing = self._ticks.get(tick)
        if existing is not None:
            return existing
        return Tick(tick_idx=tick)

    def update_tick(self, tick: Tick) -> None:
        was_initialized = tick.tick_idx in self._ticks
        if tick.initialized:
            if not was_initialized:
                self.flip_tick(tick.tick_idx)
            self._ticks[tick.tick_idx] = tick
        elif was_initialized:
            self.flip_tick(tick.tick_idx)
            del self._ticks[tick.tick_idx]

    def initialized_ticks(self) -> Iterator[Tick]:
        return iter([self._ticks[idx] for idx in sorted(self._ticks)])

    def next_initialized_tick_within_one_word(
        self,
        tick: int,
        tick_spacing: int,
        lte: bool
    ) -> Tuple[int, bool]:
        if tick_spacing != self.tick_spacing:
            raise InvalidInputError(
                f"비트맵의 tick spacing({self.tick_spacing})과 다릅니다: {tick_spacing}"
            )

        # Python의 floor division은 음수 틱에서 -∞ 방향으로 내림 (Solidity 보정과 동일)
        compressed = tick // tick_spacing

        if lte:
            word_pos, bit_pos = position(compressed)
            # 현재 비트 포함 오른쪽의 모든 1
            mask = (1 << bit_pos) - 1 + (1 << bit_pos)
            masked = self.get_word(word_pos) & mask

            initialized = masked != 0
            if initialized:
                return (compressed - (bit_pos - most_significant_bit(masked))) * tick_spacing, True
            return (compressed - bit_pos) * tick_spacing, False

        # 현재 틱의 상태는 무관하므로 다음 틱의 워드부터 시작
        word_pos, bit_pos = position(compressed + 1)
        # 현재 비트 포함 왼쪽의 모든 1
        mask = ~((1 << bit_pos) - 1) & UINT256_MAX
        masked = self.get_word(word_pos) & mask

        initialized = masked != 0
        if initialized:
            return (compressed + 1 + (least_significant_bit(masked) - bit_pos)) * tick_spacing, True
        return (compressed + 1 + (255 - bit_pos)) * tick_spacing, False
