"""
Pool - 집중화된 유동성 풀 시뮬레이션

온체인 UniswapV3Pool의 swap/mint/burn/collect 상태 전이를 그대로 재현합니다.
모든 연산은 로컬 변수에 결과를 계산한 뒤 마지막에 한 번에 반영하므로,
실패한 연산은 풀 상태를 전혀 바꾸지 않습니다.

References:
- Uniswap V3 Core: contracts/UniswapV3Pool.sol (swap, _modifyPosition)
- Uniswap V3 Core: contracts/libraries/Tick.sol (update, cross)
- 백서 Section 6.2 ~ 6.4
"""

import copy
import logging
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Dict, Iterable, List, Optional, Tuple

from ..constants import (
    INT128_MAX,
    INT128_MIN,
    MAX_SQRT_RATIO,
    MAX_TICK,
    MIN_SQRT_RATIO,
    MIN_TICK,
    Q128,
    Q192,
    UINT128_MAX,
)
from ..data.types import PoolSnapshot, PositionInfo, Tick, Token, TokenAmount
from ..exceptions import (
    InsufficientLiquidityError,
    InvalidInputError,
    InvalidPriceLimitError,
    LiquidityOverflowError,
)
from ..math.fee_math import get_fee_growth_inside, get_tokens_owed
from ..math.full_math import mul_div, wrapping_add, wrapping_sub
from ..math.liquidity_math import add_delta
from ..math.sqrt_price_math import get_amount0_delta_signed, get_amount1_delta_signed
from ..math.swap_math import compute_swap_step
from ..math.tick_math import get_sqrt_ratio_at_tick, get_tick_at_sqrt_ratio, get_tick_spacing_for_fee
from ..ticks.base import TickDataProvider
from ..ticks.tick_bitmap import TickBitmapDataProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SwapStep:
    """스왑 루프 한 구간의 기록"""
    sqrt_price_start_x96: int
    tick_next: int
    initialized: bool
    sqrt_price_next_x96: int  # 구간 끝 가격
    liquidity: int  # 구간에서 활성화된 유동성
    amount_in: int
    amount_out: int
    fee_amount: int
    crossed: bool  # tick_next를 넘었는지


@dataclass(frozen=True)
class SwapResult:
    """스왑 시뮬레이션 결과

    amount0/amount1은 풀 기준 부호입니다 (양수 = 풀이 받음, 음수 = 풀이 지급).
    """
    zero_for_one: bool
    amount_specified: int
    amount0: int
    amount1: int
    amount_specified_remaining: int
    sqrt_price_x96: int
    tick: int
    liquidity: int
    fee_growth_global_0_x128: int
    fee_growth_global_1_x128: int
    steps: List[SwapStep] = field(default_factory=list)
    crossed_ticks: List[Tick] = field(default_factory=list)  # fee growth outside가 뒤집힌 틱

    @property
    def fee_amount(self) -> int:
        return sum(step.fee_amount for step in self.steps)


def tick_spacing_to_max_liquidity_per_tick(tick_spacing: int) -> int:
    """틱당 최대 liquidity_gross (Tick.tickSpacingToMaxLiquidityPerTick)"""
    # Solidity 정수 나눗셈은 0 방향으로 버림
    min_tick = int(MIN_TICK / tick_spacing) * tick_spacing
    max_tick = int(MAX_TICK / tick_spacing) * tick_spacing
    num_ticks = (max_tick - min_tick) // tick_spacing + 1
    return UINT128_MAX // num_ticks


class Pool:
    """Uniswap V3 Pool

    사용법:
        pool = Pool(weth, usdc, FeeAmount.MEDIUM, sqrt_price_x96, liquidity, ticks=provider)
        amount_out, pool_after = pool.get_output_amount(TokenAmount(weth, 10 ** 18))
        result = pool.swap(True, 10 ** 18)
    """

    def __init__(
        self,
        token_a: Token,
        token_b: Token,
        fee: int,
        sqrt_price_x96: int,
        liquidity: int,
        tick_current: Optional[int] = None,
        ticks: Optional[TickDataProvider] = None,
        fee_growth_global_0_x128: int = 0,
        fee_growth_global_1_x128: int = 0,
        tick_spacing: Optional[int] = None,
        pool_id: Optional[str] = None
    ):
        """
        Args:
            token_a, token_b: 풀의 두 토큰 (주소 순서로 token0/token1 결정)
            fee: 수수료 티어 (pips)
            sqrt_price_x96: 현재 √가격 (Q96)
            liquidity: 현재 활성 유동성
            tick_current: 현재 틱. 생략하면 가격에서 계산
            ticks: 틱 데이터 제공자. 생략하면 빈 비트맵
            tick_spacing: 생략하면 수수료 티어에서 결정
            pool_id: Pool 컨트랙트 주소 (선택)
        """
        if not 0 <= int(fee) < 1_000_000:
            raise InvalidInputError(f"수수료가 범위를 벗어났습니다: {fee}")
        if not MIN_SQRT_RATIO <= sqrt_price_x96 < MAX_SQRT_RATIO:
            raise InvalidInputError(f"sqrtPriceX96이 범위를 벗어났습니다: {sqrt_price_x96}")
        if not 0 <= liquidity <= UINT128_MAX:
            raise InvalidInputError(f"유동성이 범위를 벗어났습니다: {liquidity}")

        if token_a.sorts_before(token_b):
            self.token0, self.token1 = token_a, token_b
        else:
            self.token0, self.token1 = token_b, token_a

        self.fee = int(fee)
        self.tick_spacing = tick_spacing if tick_spacing is not None else get_tick_spacing_for_fee(self.fee)
        if self.tick_spacing <= 0:
            raise InvalidInputError(f"tick spacing은 양수여야 합니다: {self.tick_spacing}")

        if tick_current is None:
            tick_current = get_tick_at_sqrt_ratio(sqrt_price_x96)
        else:
            # 아래로 틱을 정확히 넘은 직후에는 가격이 tick_current + 1의 경계에 있을 수 있음
            lower = get_sqrt_ratio_at_tick(tick_current)
            upper = get_sqrt_ratio_at_tick(tick_current + 1) if tick_current < MAX_TICK else MAX_SQRT_RATIO
            if not lower <= sqrt_price_x96 <= upper:
                raise InvalidInputError(
                    f"tick {tick_current}이 sqrtPriceX96 {sqrt_price_x96}과 일치하지 않습니다"
                )

        self.id = pool_id
        self.sqrt_price_x96 = sqrt_price_x96
        self.liquidity = liquidity
        self.tick_current = tick_current
        self.fee_growth_global_0_x128 = fee_growth_global_0_x128
        self.fee_growth_global_1_x128 = fee_growth_global_1_x128
        self.ticks = ticks if ticks is not None else TickBitmapDataProvider(self.tick_spacing)
        self.max_liquidity_per_tick = tick_spacing_to_max_liquidity_per_tick(self.tick_spacing)
        self.positions: Dict[Tuple[int, int], PositionInfo] = {}

    @classmethod
    def from_snapshot(
        cls,
        snapshot: PoolSnapshot,
        ticks: Iterable[Tick] = (),
        provider: Optional[TickDataProvider] = None
    ) -> "Pool":
        """외부에서 조회한 스냅샷으로 Pool 생성

        provider를 생략하면 ticks로 비트맵 제공자를 만듭니다.
        """
        if provider is None:
            provider = TickBitmapDataProvider(get_tick_spacing_for_fee(snapshot.fee_tier), ticks)
        return cls(
            token_a=snapshot.token0,
            token_b=snapshot.token1,
            fee=snapshot.fee_tier,
            sqrt_price_x96=snapshot.sqrt_price,
            liquidity=snapshot.liquidity,
            tick_current=snapshot.tick,
            ticks=provider,
            fee_growth_global_0_x128=snapshot.fee_growth_global_0_x128,
            fee_growth_global_1_x128=snapshot.fee_growth_global_1_x128,
            pool_id=snapshot.id,
        )

    @classmethod
    def from_dict(cls, data: dict, ticks: Iterable[dict] = ()) -> "Pool":
        """Subgraph 형식의 pool/ticks dict로 Pool 생성"""
        return cls.from_snapshot(PoolSnapshot.from_dict(data), [Tick.from_dict(t) for t in ticks])

    def __repr__(self) -> str:
        return (
            f"Pool({self.token0.symbol}/{self.token1.symbol}, fee={self.fee}, "
            f"tick={self.tick_current}, liquidity={self.liquidity})"
        )

    # === 가격 ===

    @property
    def identity(self) -> Tuple[str, str, int]:
        """(token0 주소, token1 주소, fee). 같은 풀 판별에 사용"""
        return self.token0.id.lower(), self.token1.id.lower(), self.fee

    @property
    def token0_price(self) -> Fraction:
        """token0 1 단위당 token1 (최소 단위 기준)"""
        return Fraction(self.sqrt_price_x96 * self.sqrt_price_x96, Q192)

    @property
    def token1_price(self) -> Fraction:
        """token1 1 단위당 token0 (최소 단위 기준)"""
        return Fraction(Q192, self.sqrt_price_x96 * self.sqrt_price_x96)

    def involves_token(self, token: Token) -> bool:
        return token.equals(self.token0) or token.equals(self.token1)

    def price_of(self, token: Token) -> Fraction:
        """token 1 단위의 상대 토큰 가격"""
        if token.equals(self.token0):
            return self.token0_price
        if token.equals(self.token1):
            return self.token1_price
        raise InvalidInputError(f"풀에 없는 토큰입니다: {token.symbol}")

    # === 스왑 ===

    def simulate_swap(
        self,
        zero_for_one: bool,
        amount_specified: int,
        sqrt_price_limit_x96: Optional[int] = None
    ) -> SwapResult:
        """상태를 바꾸지 않고 스왑 결과 계산

        Args:
            zero_for_one: True면 token0 → token1
            amount_specified: 양수면 exact input, 음수면 exact output
            sqrt_price_limit_x96: 가격 한도. 생략하면 전역 경계 바로 안쪽

        Raises:
            InvalidInputError: amount_specified가 0
            InvalidPriceLimitError: 가격 한도가 현재 가격의 잘못된 쪽이거나 전역 범위 밖
            InsufficientLiquidityError: 한 단위도 스왑하지 못한 경우
        """
        if amount_specified == 0:
            raise InvalidInputError("amount_specified는 0일 수 없습니다")

        if sqrt_price_limit_x96 is None:
            sqrt_price_limit_x96 = MIN_SQRT_RATIO + 1 if zero_for_one else MAX_SQRT_RATIO - 1

        if zero_for_one:
            if not MIN_SQRT_RATIO < sqrt_price_limit_x96 < self.sqrt_price_x96:
                raise InvalidPriceLimitError(
                    f"가격 한도 {sqrt_price_limit_x96}는 ({MIN_SQRT_RATIO}, {self.sqrt_price_x96}) 안에 있어야 합니다"
                )
        elif not self.sqrt_price_x96 < sqrt_price_limit_x96 < MAX_SQRT_RATIO:
            raise InvalidPriceLimitError(
                f"가격 한도 {sqrt_price_limit_x96}는 ({self.sqrt_price_x96}, {MAX_SQRT_RATIO}) 안에 있어야 합니다"
            )

        exact_input = amount_specified > 0

        amount_remaining = amount_specified
        amount_calculated = 0
        sqrt_price_x96 = self.sqrt_price_x96
        tick = self.tick_current
        liquidity = self.liquidity
        fee_growth_global_x128 = self.fee_growth_global_0_x128 if zero_for_one else self.fee_growth_global_1_x128

        steps: List[SwapStep] = []
        crossed_ticks: List[Tick] = []

        while amount_remaining != 0 and sqrt_price_x96 != sqrt_price_limit_x96:
            sqrt_price_start_x96 = sqrt_price_x96

            tick_next, initialized = self.ticks.next_initialized_tick_within_one_word(
                tick, self.tick_spacing, zero_for_one
            )
            # 비트맵은 전역 틱 경계를 모르므로 여기서 잘라냄
            tick_next = max(MIN_TICK, min(MAX_TICK, tick_next))
            sqrt_price_next_x96 = get_sqrt_ratio_at_tick(tick_next)

            if (zero_for_one and sqrt_price_next_x96 < sqrt_price_limit_x96) or (
                not zero_for_one and sqrt_price_next_x96 > sqrt_price_limit_x96
            ):
                sqrt_price_target_x96 = sqrt_price_limit_x96
            else:
                sqrt_price_target_x96 = sqrt_price_next_x96

            sqrt_price_x96, amount_in, amount_out, fee_amount = compute_swap_step(
                sqrt_price_x96,
                sqrt_price_target_x96,
                liquidity,
                amount_remaining,
                self.fee,
            )

            if exact_input:
                amount_remaining -= amount_in + fee_amount
                amount_calculated -= amount_out
            else:
                amount_remaining += amount_out
                amount_calculated += amount_in + fee_amount

            if liquidity > 0:
                fee_growth_global_x128 = wrapping_add(
                    fee_growth_global_x128, mul_div(fee_amount, Q128, liquidity)
                )

            step_liquidity = liquidity
            crossed = False
            if sqrt_price_x96 == sqrt_price_next_x96:
                if initialized:
                    if zero_for_one:
                        fee_growth_0, fee_growth_1 = fee_growth_global_x128, self.fee_growth_global_1_x128
                    else:
                        fee_growth_0, fee_growth_1 = self.fee_growth_global_0_x128, fee_growth_global_x128
                    crossed_tick = self._cross(tick_next, fee_growth_0, fee_growth_1)
                    crossed_ticks.append(crossed_tick)

                    liquidity_net = crossed_tick.liquidity_net
                    if zero_for_one:
                        liquidity_net = -liquidity_net
                    liquidity = add_delta(liquidity, liquidity_net)
                    crossed = True
                    logger.debug(
                        "crossed tick %d (liquidity_net=%d, liquidity=%d)",
                        tick_next, crossed_tick.liquidity_net, liquidity,
                    )

                tick = tick_next - 1 if zero_for_one else tick_next
            elif sqrt_price_x96 != sqrt_price_start_x96:
                tick = get_tick_at_sqrt_ratio(sqrt_price_x96)

            steps.append(SwapStep(
                sqrt_price_start_x96=sqrt_price_start_x96,
                tick_next=tick_next,
                initialized=initialized,
                sqrt_price_next_x96=sqrt_price_x96,
                liquidity=step_liquidity,
                amount_in=amount_in,
                amount_out=amount_out,
                fee_amount=fee_amount,
                crossed=crossed,
            ))

        if amount_specified == amount_remaining:
            raise InsufficientLiquidityError(
                f"스왑할 유동성이 없습니다 (tick={self.tick_current}, liquidity={self.liquidity})"
            )

        if zero_for_one == exact_input:
            amount0 = amount_specified - amount_remaining
            amount1 = amount_calculated
        else:
            amount0 = amount_calculated
            amount1 = amount_specified - amount_remaining

        if zero_for_one:
            fee_growth_global_0_x128, fee_growth_global_1_x128 = fee_growth_global_x128, self.fee_growth_global_1_x128
        else:
            fee_growth_global_0_x128, fee_growth_global_1_x128 = self.fee_growth_global_0_x128, fee_growth_global_x128

        logger.debug(
            "swap zero_for_one=%s amount_specified=%d limit=%d: %d steps, tick %d -> %d, amount0=%d amount1=%d",
            zero_for_one, amount_specified, sqrt_price_limit_x96, len(steps),
            self.tick_current, tick, amount0, amount1,
        )

        return SwapResult(
            zero_for_one=zero_for_one,
            amount_specified=amount_specified,
            amount0=amount0,
            amount1=amount1,
            amount_specified_remaining=amount_remaining,
            sqrt_price_x96=sqrt_price_x96,
            tick=tick,
            liquidity=liquidity,
            fee_growth_global_0_x128=fee_growth_global_0_x128,
            fee_growth_global_1_x128=fee_growth_global_1_x128,
            steps=steps,
            crossed_ticks=crossed_ticks,
        )

    def _cross(self, tick: int, fee_growth_global_0_x128: int, fee_growth_global_1_x128: int) -> Tick:
        """틱을 넘을 때 fee growth outside 반전 (Tick.cross)"""
        info = self.ticks.get_tick(tick)
        return Tick(
            tick_idx=tick,
            liquidity_gross=info.liquidity_gross,
            liquidity_net=info.liquidity_net,
            fee_growth_outside_0_x128=wrapping_sub(fee_growth_global_0_x128, info.fee_growth_outside_0_x128),
            fee_growth_outside_1_x128=wrapping_sub(fee_growth_global_1_x128, info.fee_growth_outside_1_x128),
        )

    def apply_swap(self, result: SwapResult) -> None:
        """simulate_swap 결과를 풀에 반영"""
        for crossed_tick in result.crossed_ticks:
            self.ticks.update_tick(crossed_tick)
        self.sqrt_price_x96 = result.sqrt_price_x96
        self.tick_current = result.tick
        self.liquidity = result.liquidity
        self.fee_growth_global_0_x128 = result.fee_growth_global_0_x128
        self.fee_growth_global_1_x128 = result.fee_growth_global_1_x128

    def swap(
        self,
        zero_for_one: bool,
        amount_specified: int,
        sqrt_price_limit_x96: Optional[int] = None
    ) -> SwapResult:
        """스왑을 실행하고 풀 상태를 갱신 (simulate_swap 참조)"""
        result = self.simulate_swap(zero_for_one, amount_specified, sqrt_price_limit_x96)
        self.apply_swap(result)
        return result

    def clone(self) -> "Pool":
        """틱과 포지션까지 독립적인 복사본"""
        cloned = copy.copy(self)
        cloned.ticks = self.ticks.clone()
        cloned.positions = dict(self.positions)
        return cloned

    def _after(self, result: SwapResult) -> "Pool":
        cloned = copy.copy(self)
        cloned.positions = dict(self.positions)
        cloned.ticks = self.ticks.clone()
        cloned.apply_swap(result)
        return cloned

    def get_output_amount(
        self,
        input_amount: TokenAmount,
        sqrt_price_limit_x96: Optional[int] = None
    ) -> Tuple[TokenAmount, "Pool"]:
        """exact input 견적

        Returns:
            (출력 수량, 스왑 후 풀). 원래 풀은 바뀌지 않습니다.

        Raises:
            InsufficientLiquidityError: 가격 한도 없이 입력을 모두 소진하지 못한 경우
        """
        if not self.involves_token(input_amount.token):
            raise InvalidInputError(f"풀에 없는 토큰입니다: {input_amount.token.symbol}")

        zero_for_one = input_amount.token.equals(self.token0)
        result = self.simulate_swap(zero_for_one, input_amount.amount, sqrt_price_limit_x96)
        if result.amount_specified_remaining != 0 and sqrt_price_limit_x96 is None:
            raise InsufficientLiquidityError(
                f"유동성이 부족합니다: 입력 {input_amount.amount} 중 {result.amount_specified_remaining} 미체결"
            )

        output_token = self.token1 if zero_for_one else self.token0
        output = -(result.amount1 if zero_for_one else result.amount0)
        return TokenAmount(output_token, output), self._after(result)

    def get_input_amount(
        self,
        output_amount: TokenAmount,
        sqrt_price_limit_x96: Optional[int] = None
    ) -> Tuple[TokenAmount, "Pool"]:
        """exact output 견적

        Returns:
            (필요한 입력 수량, 스왑 후 풀). 원래 풀은 바뀌지 않습니다.
        """
        if not self.involves_token(output_amount.token):
            raise InvalidInputError(f"풀에 없는 토큰입니다: {output_amount.token.symbol}")

        zero_for_one = output_amount.token.equals(self.token1)
        result = self.simulate_swap(zero_for_one, -output_amount.amount, sqrt_price_limit_x96)
        if result.amount_specified_remaining != 0 and sqrt_price_limit_x96 is None:
            raise InsufficientLiquidityError(
                f"유동성이 부족합니다: 출력 {output_amount.amount} 중 {-result.amount_specified_remaining} 미체결"
            )

        input_token = self.token0 if zero_for_one else self.token1
        amount_in = result.amount0 if zero_for_one else result.amount1
        return TokenAmount(input_token, amount_in), self._after(result)

    # === 유동성 ===

    def _check_ticks(self, tick_lower: int, tick_upper: int) -> None:
        if tick_lower >= tick_upper:
            raise InvalidInputError(f"tick_lower({tick_lower})는 tick_upper({tick_upper})보다 작아야 합니다")
        if tick_lower < MIN_TICK or tick_upper > MAX_TICK:
            raise InvalidInputError(f"틱 범위 초과: [{tick_lower}, {tick_upper}]")
        if tick_lower % self.tick_spacing or tick_upper % self.tick_spacing:
            raise InvalidInputError(
                f"틱 [{tick_lower}, {tick_upper}]이 tick spacing {self.tick_spacing}의 배수가 아닙니다"
            )

    def _updated_tick(self, tick: int, liquidity_delta: int, upper: bool) -> Tick:
        """유동성 변화 후의 틱 상태 (Tick.update)"""
        info = self.ticks.get_tick(tick)

        liquidity_gross_after = add_delta(info.liquidity_gross, liquidity_delta)
        if liquidity_gross_after > self.max_liquidity_per_tick:
            raise LiquidityOverflowError(
                f"틱 {tick}의 유동성 {liquidity_gross_after}이 최대값 {self.max_liquidity_per_tick}을 초과합니다"
            )

        fee_growth_outside_0 = info.fee_growth_outside_0_x128
        fee_growth_outside_1 = info.fee_growth_outside_1_x128
        # 새로 초기화되는 틱은 지금까지의 수수료가 모두 틱 아래에서 발생했다고 가정
        if info.liquidity_gross == 0 and tick <= self.tick_current:
            fee_growth_outside_0 = self.fee_growth_global_0_x128
            fee_growth_outside_1 = self.fee_growth_global_1_x128

        liquidity_net = info.liquidity_net - liquidity_delta if upper else info.liquidity_net + liquidity_delta
        if not INT128_MIN <= liquidity_net <= INT128_MAX:
            raise LiquidityOverflowError(f"틱 {tick}의 liquidity_net이 int128을 벗어났습니다: {liquidity_net}")

        return Tick(
            tick_idx=tick,
            liquidity_gross=liquidity_gross_after,
            liquidity_net=liquidity_net,
            fee_growth_outside_0_x128=fee_growth_outside_0,
            fee_growth_outside_1_x128=fee_growth_outside_1,
        )

    def _modify_position(
        self,
        tick_lower: int,
        tick_upper: int,
        liquidity_delta: int
    ) -> Tuple[int, int]:
        """포지션 유동성 변경 (UniswapV3Pool._modifyPosition)

        Returns:
            (amount0, amount1) 부호 있는 풀 기준 수량
        """
        self._check_ticks(tick_lower, tick_upper)

        key = (tick_lower, tick_upper)
        position = self.positions.get(key, PositionInfo(tick_lower, tick_upper))
        if liquidity_delta == 0 and position.liquidity == 0:
            raise InsufficientLiquidityError(f"유동성이 없는 포지션입니다: {key}")
        if liquidity_delta < 0 and -liquidity_delta > position.liquidity:
            raise InsufficientLiquidityError(
                f"포지션 {key}의 유동성 {position.liquidity}보다 많이 제거할 수 없습니다: {-liquidity_delta}"
            )

        if liquidity_delta != 0:
            lower = self._updated_tick(tick_lower, liquidity_delta, upper=False)
            upper = self._updated_tick(tick_upper, liquidity_delta, upper=True)
        else:
            lower = self.ticks.get_tick(tick_lower)
            upper = self.ticks.get_tick(tick_upper)

        fee_growth_inside_0, fee_growth_inside_1 = get_fee_growth_inside(
            (lower.fee_growth_outside_0_x128, lower.fee_growth_outside_1_x128),
            (upper.fee_growth_outside_0_x128, upper.fee_growth_outside_1_x128),
            tick_lower,
            tick_upper,
            self.tick_current,
            self.fee_growth_global_0_x128,
            self.fee_growth_global_1_x128,
        )
        tokens_owed_0, tokens_owed_1 = get_tokens_owed(
            position.fee_growth_inside_0_last_x128,
            position.fee_growth_inside_1_last_x128,
            position.liquidity,
            fee_growth_inside_0,
            fee_growth_inside_1,
        )

        new_position = PositionInfo(
            tick_lower=tick_lower,
            tick_upper=tick_upper,
            liquidity=add_delta(position.liquidity, liquidity_delta),
            fee_growth_inside_0_last_x128=fee_growth_inside_0,
            fee_growth_inside_1_last_x128=fee_growth_inside_1,
            tokens_owed_0=position.tokens_owed_0 + tokens_owed_0,
            tokens_owed_1=position.tokens_owed_1 + tokens_owed_1,
        )

        amount0 = amount1 = 0
        liquidity = self.liquidity
        if liquidity_delta != 0:
            sqrt_lower = get_sqrt_ratio_at_tick(tick_lower)
            sqrt_upper = get_sqrt_ratio_at_tick(tick_upper)
            if self.tick_current < tick_lower:
                amount0 = get_amount0_delta_signed(sqrt_lower, sqrt_upper, liquidity_delta)
            elif self.tick_current < tick_upper:
                amount0 = get_amount0_delta_signed(self.sqrt_price_x96, sqrt_upper, liquidity_delta)
                amount1 = get_amount1_delta_signed(sqrt_lower, self.sqrt_price_x96, liquidity_delta)
                liquidity = add_delta(liquidity, liquidity_delta)
            else:
                amount1 = get_amount1_delta_signed(sqrt_lower, sqrt_upper, liquidity_delta)

        # 모든 검증이 끝난 뒤 반영
        if liquidity_delta != 0:
            self.ticks.update_tick(lower)
            self.ticks.update_tick(upper)
        self.positions[key] = new_position
        self.liquidity = liquidity
        return amount0, amount1

    def mint(self, tick_lower: int, tick_upper: int, amount: int) -> Tuple[int, int]:
        """유동성 추가

        Returns:
            (amount0, amount1) 풀에 넣어야 하는 수량 (올림)
        """
        if amount <= 0:
            raise InvalidInputError(f"mint 유동성은 양수여야 합니다: {amount}")
        amount0, amount1 = self._modify_position(tick_lower, tick_upper, amount)
        logger.debug("mint [%d, %d] liquidity=%d: amount0=%d amount1=%d",
                     tick_lower, tick_upper, amount, amount0, amount1)
        return amount0, amount1

    def burn(self, tick_lower: int, tick_upper: int, amount: int) -> Tuple[int, int]:
        """유동성 제거. 제거된 원금은 tokens_owed에 적립됩니다

        amount=0이면 수수료만 정산합니다.

        Returns:
            (amount0, amount1) 포지션에 적립된 원금 (내림)
        """
        if amount < 0:
            raise InvalidInputError(f"burn 유동성은 음수일 수 없습니다: {amount}")
        amount0, amount1 = self._modify_position(tick_lower, tick_upper, -amount)
        amount0, amount1 = -amount0, -amount1

        if amount0 > 0 or amount1 > 0:
            key = (tick_lower, tick_upper)
            position = self.positions[key]
            self.positions[key] = PositionInfo(
                tick_lower=tick_lower,
                tick_upper=tick_upper,
                liquidity=position.liquidity,
                fee_growth_inside_0_last_x128=position.fee_growth_inside_0_last_x128,
                fee_growth_inside_1_last_x128=position.fee_growth_inside_1_last_x128,
                tokens_owed_0=position.tokens_owed_0 + amount0,
                tokens_owed_1=position.tokens_owed_1 + amount1,
            )
        logger.debug("burn [%d, %d] liquidity=%d: amount0=%d amount1=%d",
                     tick_lower, tick_upper, amount, amount0, amount1)
        return amount0, amount1

    def collect(
        self,
        tick_lower: int,
        tick_upper: int,
        amount0_requested: Optional[int] = None,
        amount1_requested: Optional[int] = None
    ) -> Tuple[int, int]:
        """적립된 토큰 수령

        요청량을 생략하면 전부 수령합니다. 포지션이 없으면 (0, 0).
        """
        key = (tick_lower, tick_upper)
        position = self.positions.get(key)
        if position is None:
            return 0, 0

        amount0 = position.tokens_owed_0 if amount0_requested is None else min(amount0_requested, position.tokens_owed_0)
        amount1 = position.tokens_owed_1 if amount1_requested is None else min(amount1_requested, position.tokens_owed_1)
        if amount0 < 0 or amount1 < 0:
            raise InvalidInputError(f"수령 요청량은 음수일 수 없습니다: ({amount0_requested}, {amount1_requested})")

        self.positions[key] = PositionInfo(
            tick_lower=tick_lower,
            tick_upper=tick_upper,
            liquidity=position.liquidity,
            fee_growth_inside_0_last_x128=position.fee_growth_inside_0_last_x128,
            fee_growth_inside_1_last_x128=position.fee_growth_inside_1_last_x128,
            tokens_owed_0=position.tokens_owed_0 - amount0,
            tokens_owed_1=position.tokens_owed_1 - amount1,
        )
        logger.debug("collect [%d, %d]: amount0=%d amount1=%d", tick_lower, tick_upper, amount0, amount1)
        return amount0, amount1
