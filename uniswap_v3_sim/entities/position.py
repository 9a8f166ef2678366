"""
Position - 유동성 범위의 토큰 수량과 수수료

백서 Section 6.4의 포지션 관점 계산:
- 가격이 범위 아래: token0만 보유
- 가격이 범위 안: 두 토큰 모두 보유
- 가격이 범위 위: token1만 보유

References:
- Uniswap V3 SDK: entities/position.ts
- 백서 Section 6.4.1 (uncollected fees)
"""

from fractions import Fraction
from typing import Optional, Tuple

from ..constants import MAX_SQRT_RATIO, MAX_TICK, MIN_SQRT_RATIO, MIN_TICK, UINT256_MAX
from ..data.types import TokenAmount
from ..exceptions import InvalidInputError
from ..math.convert import (
    PriceLike,
    encode_sqrt_ratio_x96,
    price_to_sqrt_ratio_x96,
    tick_to_price_fraction,
    token0_price_to_ratio,
)
from ..math.fee_math import get_fee_growth_inside, get_tokens_owed
from ..math.liquidity_math import max_liquidity_for_amounts
from ..math.sqrt_price_math import get_amount0_delta, get_amount1_delta
from ..math.tick_math import get_sqrt_ratio_at_tick
from ..ticks.base import NoTickDataProvider
from .pool import Pool


class Position:
    """풀 위의 유동성 포지션

    사용법:
        position = Position.from_amounts(pool, -600, 600, amount0, amount1)
        position.amount0, position.amount1
    """

    def __init__(self, pool: Pool, liquidity: int, tick_lower: int, tick_upper: int):
        if tick_lower >= tick_upper:
            raise InvalidInputError(f"tick_lower({tick_lower})는 tick_upper({tick_upper})보다 작아야 합니다")
        if tick_lower < MIN_TICK or tick_lower % pool.tick_spacing:
            raise InvalidInputError(f"유효하지 않은 tick_lower: {tick_lower}")
        if tick_upper > MAX_TICK or tick_upper % pool.tick_spacing:
            raise InvalidInputError(f"유효하지 않은 tick_upper: {tick_upper}")
        if liquidity < 0:
            raise InvalidInputError(f"유동성은 음수일 수 없습니다: {liquidity}")

        self.pool = pool
        self.liquidity = liquidity
        self.tick_lower = tick_lower
        self.tick_upper = tick_upper

    def __repr__(self) -> str:
        return f"Position([{self.tick_lower}, {self.tick_upper}], liquidity={self.liquidity})"

    @property
    def token0_price_lower(self) -> Fraction:
        """하한 틱의 token0 가격"""
        return tick_to_price_fraction(self.tick_lower)

    @property
    def token0_price_upper(self) -> Fraction:
        """상한 틱의 token0 가격"""
        return tick_to_price_fraction(self.tick_upper)

    def _amounts(self, round_up: bool) -> Tuple[int, int]:
        sqrt_lower = get_sqrt_ratio_at_tick(self.tick_lower)
        sqrt_upper = get_sqrt_ratio_at_tick(self.tick_upper)
        tick_current = self.pool.tick_current
        sqrt_current = self.pool.sqrt_price_x96

        if tick_current < self.tick_lower:
            return get_amount0_delta(sqrt_lower, sqrt_upper, self.liquidity, round_up), 0
        if tick_current < self.tick_upper:
            return (
                get_amount0_delta(sqrt_current, sqrt_upper, self.liquidity, round_up),
                get_amount1_delta(sqrt_lower, sqrt_current, self.liquidity, round_up),
            )
        return 0, get_amount1_delta(sqrt_lower, sqrt_upper, self.liquidity, round_up)

    @property
    def amount0(self) -> TokenAmount:
        """현재 가격에서 포지션의 token0 (내림)"""
        return TokenAmount(self.pool.token0, self._amounts(round_up=False)[0])

    @property
    def amount1(self) -> TokenAmount:
        """현재 가격에서 포지션의 token1 (내림)"""
        return TokenAmount(self.pool.token1, self._amounts(round_up=False)[1])

    def mint_amounts(self) -> Tuple[int, int]:
        """이 유동성을 mint하는 데 필요한 (amount0, amount1) (올림)"""
        return self._amounts(round_up=True)

    def _ratios_after_slippage(self, slippage_tolerance: Fraction) -> Tuple[int, int]:
        """슬리피지를 반영한 (하한, 상한) sqrtPriceX96"""
        slippage_tolerance = Fraction(slippage_tolerance)
        if slippage_tolerance < 0:
            raise InvalidInputError(f"슬리피지는 음수일 수 없습니다: {slippage_tolerance}")

        price = self.pool.token0_price
        price_lower = price * (1 - slippage_tolerance)
        price_upper = price * (1 + slippage_tolerance)

        if price_lower <= 0:
            sqrt_ratio_lower = MIN_SQRT_RATIO + 1
        else:
            sqrt_ratio_lower = max(
                encode_sqrt_ratio_x96(price_lower.numerator, price_lower.denominator),
                MIN_SQRT_RATIO + 1,
            )
        sqrt_ratio_upper = min(
            encode_sqrt_ratio_x96(price_upper.numerator, price_upper.denominator),
            MAX_SQRT_RATIO - 1,
        )
        return sqrt_ratio_lower, sqrt_ratio_upper

    def _at_price(self, sqrt_price_x96: int, liquidity: int) -> "Position":
        pool = Pool(
            self.pool.token0,
            self.pool.token1,
            self.pool.fee,
            sqrt_price_x96,
            0,
            ticks=NoTickDataProvider(),
            tick_spacing=self.pool.tick_spacing,
        )
        return Position(pool, liquidity, self.tick_lower, self.tick_upper)

    def mint_amounts_with_slippage(self, slippage_tolerance: Fraction) -> Tuple[int, int]:
        """가격이 슬리피지 범위 안에서 움직여도 mint가 성공하는 최대 수량

        Returns:
            (amount0, amount1)
        """
        sqrt_ratio_lower, sqrt_ratio_upper = self._ratios_after_slippage(slippage_tolerance)

        # 현재 가격에서 실제로 만들어질 포지션 (온체인 라우터와 같은 부정확한 계산)
        amount0, amount1 = self.mint_amounts()
        created = Position.from_amounts(
            self.pool, self.tick_lower, self.tick_upper, amount0, amount1, use_full_precision=False
        )

        amount0 = self._at_price(sqrt_ratio_upper, created.liquidity).mint_amounts()[0]
        amount1 = self._at_price(sqrt_ratio_lower, created.liquidity).mint_amounts()[1]
        return amount0, amount1

    def burn_amounts_with_slippage(self, slippage_tolerance: Fraction) -> Tuple[int, int]:
        """가격이 슬리피지 범위 안에서 움직여도 burn으로 받는 최소 수량

        Returns:
            (amount0, amount1)
        """
        sqrt_ratio_lower, sqrt_ratio_upper = self._ratios_after_slippage(slippage_tolerance)
        amount0 = self._at_price(sqrt_ratio_upper, self.liquidity).amount0.amount
        amount1 = self._at_price(sqrt_ratio_lower, self.liquidity).amount1.amount
        return amount0, amount1

    def fees_earned(
        self,
        fee_growth_inside_0_last_x128: Optional[int] = None,
        fee_growth_inside_1_last_x128: Optional[int] = None
    ) -> Tuple[int, int]:
        """마지막 정산 이후 포지션이 번 수수료

        기준값을 생략하면 풀에 기록된 같은 범위의 포지션 값(없으면 0)을 사용합니다.

        Returns:
            (fee0, fee1) 최소 단위
        """
        recorded = self.pool.positions.get((self.tick_lower, self.tick_upper))
        if fee_growth_inside_0_last_x128 is None:
            fee_growth_inside_0_last_x128 = recorded.fee_growth_inside_0_last_x128 if recorded else 0
        if fee_growth_inside_1_last_x128 is None:
            fee_growth_inside_1_last_x128 = recorded.fee_growth_inside_1_last_x128 if recorded else 0

        lower = self.pool.ticks.get_tick(self.tick_lower)
        upper = self.pool.ticks.get_tick(self.tick_upper)
        fee_growth_inside_0, fee_growth_inside_1 = get_fee_growth_inside(
            (lower.fee_growth_outside_0_x128, lower.fee_growth_outside_1_x128),
            (upper.fee_growth_outside_0_x128, upper.fee_growth_outside_1_x128),
            self.tick_lower,
            self.tick_upper,
            self.pool.tick_current,
            self.pool.fee_growth_global_0_x128,
            self.pool.fee_growth_global_1_x128,
        )
        return get_tokens_owed(
            fee_growth_inside_0_last_x128,
            fee_growth_inside_1_last_x128,
            self.liquidity,
            fee_growth_inside_0,
            fee_growth_inside_1,
        )

    @classmethod
    def from_amounts(
        cls,
        pool: Pool,
        tick_lower: int,
        tick_upper: int,
        amount0: int,
        amount1: int,
        use_full_precision: bool = True
    ) -> "Position":
        """주어진 토큰 수량으로 만들 수 있는 최대 유동성의 포지션"""
        liquidity = max_liquidity_for_amounts(
            pool.sqrt_price_x96,
            get_sqrt_ratio_at_tick(tick_lower),
            get_sqrt_ratio_at_tick(tick_upper),
            amount0,
            amount1,
            use_full_precision,
        )
        return cls(pool, liquidity, tick_lower, tick_upper)

    @classmethod
    def from_amount0(
        cls,
        pool: Pool,
        tick_lower: int,
        tick_upper: int,
        amount0: int,
        use_full_precision: bool = True
    ) -> "Position":
        """token0 수량만으로 결정되는 포지션 (token1은 무제한)"""
        return cls.from_amounts(pool, tick_lower, tick_upper, amount0, UINT256_MAX, use_full_precision)

    @classmethod
    def from_amount1(cls, pool: Pool, tick_lower: int, tick_upper: int, amount1: int) -> "Position":
        """token1 수량만으로 결정되는 포지션 (token0은 무제한)"""
        # amount1 계산에는 정밀도 차이가 없음
        return cls.from_amounts(pool, tick_lower, tick_upper, UINT256_MAX, amount1, use_full_precision=True)


def get_position_at_price(position: Position, new_price: PriceLike) -> Position:
    """풀 가격이 new_price(token1/token0)가 되었을 때의 같은 포지션

    풀의 활성 유동성과 틱 데이터는 그대로 두고 가격만 옮긴 복사본 위에 만듭니다.
    """
    pool = position.pool
    pool_at_price = Pool(
        pool.token0,
        pool.token1,
        pool.fee,
        price_to_sqrt_ratio_x96(new_price),
        pool.liquidity,
        ticks=pool.ticks.clone(),
        fee_growth_global_0_x128=pool.fee_growth_global_0_x128,
        fee_growth_global_1_x128=pool.fee_growth_global_1_x128,
        tick_spacing=pool.tick_spacing,
        pool_id=pool.id,
    )
    return Position(pool_at_price, position.liquidity, position.tick_lower, position.tick_upper)


def get_rebalanced_position(position: Position, new_tick_lower: int, new_tick_upper: int) -> Position:
    """현재 가격에서 포지션 가치를 그대로 새 범위로 옮긴 결과

    token1 기준 가치를 새 범위의 token0 비율대로 나눈 뒤 from_amounts로 유동성을 구합니다.
    스왑 비용과 가격 영향은 반영하지 않습니다.
    """
    price = position.pool.token0_price
    equity = price * position.amount0.amount + position.amount1.amount
    token0_ratio = token0_price_to_ratio(price, new_tick_lower, new_tick_upper)
    amount1 = (1 - token0_ratio) * equity
    amount0 = (equity - amount1) / price
    return Position.from_amounts(
        position.pool,
        new_tick_lower,
        new_tick_upper,
        int(amount0),
        int(amount1),
        use_full_precision=False,
    )


def get_rebalanced_position_at_price(
    position: Position,
    new_price: PriceLike,
    new_tick_lower: int,
    new_tick_upper: int
) -> Position:
    """가격이 new_price가 된 뒤 새 범위로 리밸런싱한 포지션"""
    return get_rebalanced_position(get_position_at_price(position, new_price), new_tick_lower, new_tick_upper)
