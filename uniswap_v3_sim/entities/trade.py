"""
Trade - 경로 위의 거래와 슬리피지 경계

하나 이상의 경로로 나뉜 거래의 입출력 수량, 체결 가격, 가격 영향,
슬리피지 허용치에 따른 최소 출력/최대 입력을 계산합니다.

References:
- Uniswap V3 SDK: entities/trade.ts
"""

import functools
import logging
from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from typing import Iterable, List, Optional, Sequence, Tuple

from ..config import settings
from ..data.types import Token, TokenAmount
from ..exceptions import (
    InsufficientLiquidityError,
    InsufficientReservesOrLiquidityError,
    InvalidInputError,
)
from .pool import Pool
from .route import Route

logger = logging.getLogger(__name__)


class TradeType(Enum):
    EXACT_INPUT = "exact_input"
    EXACT_OUTPUT = "exact_output"


@dataclass(frozen=True)
class Swap:
    """한 경로에서의 체결 수량"""
    route: Route
    input_amount: TokenAmount
    output_amount: TokenAmount


def _check_slippage(slippage_tolerance: Fraction) -> Fraction:
    slippage_tolerance = Fraction(slippage_tolerance)
    if slippage_tolerance < 0:
        raise InvalidInputError(f"슬리피지는 음수일 수 없습니다: {slippage_tolerance}")
    return slippage_tolerance


class Trade:
    """거래

    사용법:
        trade = Trade.exact_in(route, TokenAmount(weth, 10 ** 18))
        trade.minimum_amount_out(Fraction(5, 1000))
    """

    def __init__(self, swaps: Sequence[Swap], trade_type: TradeType):
        if not swaps:
            raise InvalidInputError("거래에는 경로가 하나 이상 있어야 합니다")

        input_token = swaps[0].input_amount.token
        output_token = swaps[0].output_amount.token
        for swap in swaps:
            if not swap.route.input_token.equals(input_token):
                raise InvalidInputError("모든 경로의 입력 토큰이 같아야 합니다")
            if not swap.route.output_token.equals(output_token):
                raise InvalidInputError("모든 경로의 출력 토큰이 같아야 합니다")

        num_pools = sum(len(swap.route.pools) for swap in swaps)
        unique_pools = {pool.identity for swap in swaps for pool in swap.route.pools}
        if num_pools != len(unique_pools):
            raise InvalidInputError("여러 경로에 같은 풀이 중복되어 있습니다")

        self.swaps: List[Swap] = list(swaps)
        self.trade_type = trade_type
        self.input_token = input_token
        self.output_token = output_token

    def __repr__(self) -> str:
        return (
            f"Trade({self.trade_type.value}, {self.input_amount.amount} {self.input_token.symbol} -> "
            f"{self.output_amount.amount} {self.output_token.symbol})"
        )

    # === 생성 ===

    @classmethod
    def exact_in(cls, route: Route, amount_in: TokenAmount) -> "Trade":
        return cls.from_route(route, amount_in, TradeType.EXACT_INPUT)

    @classmethod
    def exact_out(cls, route: Route, amount_out: TokenAmount) -> "Trade":
        return cls.from_route(route, amount_out, TradeType.EXACT_OUTPUT)

    @classmethod
    def from_route(cls, route: Route, amount: TokenAmount, trade_type: TradeType) -> "Trade":
        """경로의 모든 풀을 순서대로 시뮬레이션해 거래 생성"""
        if trade_type == TradeType.EXACT_INPUT:
            input_amount = amount
            output_amount = route.get_output_amount(amount)
        else:
            output_amount = amount
            input_amount = route.get_input_amount(amount)

        logger.debug("trade %s on %r: %d -> %d", trade_type.value, route, input_amount.amount, output_amount.amount)
        return cls([Swap(route, input_amount, output_amount)], trade_type)

    @classmethod
    def from_routes(cls, routes: Iterable[Tuple[TokenAmount, Route]], trade_type: TradeType) -> "Trade":
        """여러 경로로 나뉜 거래. (수량, 경로) 쌍마다 시뮬레이션합니다"""
        swaps = []
        for amount, route in routes:
            swaps.extend(cls.from_route(route, amount, trade_type).swaps)
        return cls(swaps, trade_type)

    @classmethod
    def create_unchecked_trade(
        cls,
        route: Route,
        input_amount: TokenAmount,
        output_amount: TokenAmount,
        trade_type: TradeType
    ) -> "Trade":
        """시뮬레이션 없이 이미 알고 있는 수량으로 거래 생성"""
        if not input_amount.token.equals(route.input_token):
            raise InvalidInputError("입력 수량의 토큰이 경로와 다릅니다")
        if not output_amount.token.equals(route.output_token):
            raise InvalidInputError("출력 수량의 토큰이 경로와 다릅니다")
        return cls([Swap(route, input_amount, output_amount)], trade_type)

    # === 수량과 가격 ===

    @property
    def route(self) -> Route:
        """단일 경로 거래의 경로"""
        if len(self.swaps) != 1:
            raise InvalidInputError("여러 경로 거래에는 route 대신 swaps를 사용하세요")
        return self.swaps[0].route

    @property
    def input_amount(self) -> TokenAmount:
        return TokenAmount(self.input_token, sum(swap.input_amount.amount for swap in self.swaps))

    @property
    def output_amount(self) -> TokenAmount:
        return TokenAmount(self.output_token, sum(swap.output_amount.amount for swap in self.swaps))

    @property
    def execution_price(self) -> Fraction:
        """입력 1 단위당 출력 (최소 단위 기준)"""
        input_amount = self.input_amount.amount
        if input_amount == 0:
            raise InvalidInputError("입력 수량이 0인 거래의 체결 가격은 정의되지 않습니다")
        return Fraction(self.output_amount.amount, input_amount)

    @property
    def price_impact(self) -> Fraction:
        """거래 전 중간 가격 대비 출력 감소 비율"""
        spot_output = sum(swap.route.mid_price * swap.input_amount.amount for swap in self.swaps)
        if spot_output == 0:
            raise InvalidInputError("중간 가격 기준 출력이 0입니다")
        return (spot_output - self.output_amount.amount) / spot_output

    def minimum_amount_out(self, slippage_tolerance: Fraction, amount_out: Optional[int] = None) -> TokenAmount:
        """슬리피지를 감안한 최소 출력 (exact output이면 출력 그대로)"""
        slippage_tolerance = _check_slippage(slippage_tolerance)
        if amount_out is None:
            amount_out = self.output_amount.amount
        if self.trade_type == TradeType.EXACT_OUTPUT:
            return TokenAmount(self.output_token, amount_out)
        return TokenAmount(self.output_token, int(Fraction(amount_out) / (1 + slippage_tolerance)))

    def maximum_amount_in(self, slippage_tolerance: Fraction, amount_in: Optional[int] = None) -> TokenAmount:
        """슬리피지를 감안한 최대 입력 (exact input이면 입력 그대로)"""
        slippage_tolerance = _check_slippage(slippage_tolerance)
        if amount_in is None:
            amount_in = self.input_amount.amount
        if self.trade_type == TradeType.EXACT_INPUT:
            return TokenAmount(self.input_token, amount_in)
        return TokenAmount(self.input_token, int(amount_in * (1 + slippage_tolerance)))

    def worst_execution_price(self, slippage_tolerance: Fraction) -> Fraction:
        """슬리피지 경계에서의 체결 가격"""
        maximum_in = self.maximum_amount_in(slippage_tolerance).amount
        if maximum_in == 0:
            raise InvalidInputError("입력 수량이 0인 거래의 체결 가격은 정의되지 않습니다")
        return Fraction(self.minimum_amount_out(slippage_tolerance).amount, maximum_in)

    # === 최적 경로 탐색 ===

    @staticmethod
    def best_trade_exact_in(
        pools: Sequence[Pool],
        amount_in: TokenAmount,
        token_out: Token,
        max_num_results: Optional[int] = None,
        max_hops: Optional[int] = None,
        current_pools: Sequence[Pool] = (),
        next_amount_in: Optional[TokenAmount] = None,
        best_trades: Optional[List["Trade"]] = None
    ) -> List["Trade"]:
        """주어진 풀들로 만들 수 있는 exact input 거래 중 출력이 큰 순서로 최대 max_num_results개

        깊이 우선으로 max_hops까지 경로를 확장합니다.
        """
        if max_num_results is None:
            max_num_results = settings.BEST_TRADE_MAX_RESULTS
        if max_hops is None:
            max_hops = settings.BEST_TRADE_MAX_HOPS
        if best_trades is None:
            best_trades = []

        if not pools:
            raise InvalidInputError("탐색할 풀이 없습니다")
        if max_hops <= 0:
            raise InvalidInputError(f"max_hops는 양수여야 합니다: {max_hops}")
        if next_amount_in is None and current_pools:
            raise InvalidInputError("중간 경로에는 next_amount_in이 필요합니다")

        amount = next_amount_in if next_amount_in is not None else amount_in
        for i, pool in enumerate(pools):
            if not pool.involves_token(amount.token):
                continue
            try:
                amount_out, _ = pool.get_output_amount(amount)
            except (InsufficientLiquidityError, InsufficientReservesOrLiquidityError):
                continue
            if amount_out.amount == 0:
                continue

            if amount_out.token.equals(token_out):
                trade = Trade.from_route(
                    Route(list(current_pools) + [pool], amount_in.token, token_out),
                    amount_in,
                    TradeType.EXACT_INPUT,
                )
                _sorted_insert(best_trades, trade, max_num_results)
            elif max_hops > 1 and len(pools) > 1:
                Trade.best_trade_exact_in(
                    list(pools[:i]) + list(pools[i + 1:]),
                    amount_in,
                    token_out,
                    max_num_results,
                    max_hops - 1,
                    list(current_pools) + [pool],
                    amount_out,
                    best_trades,
                )
        return best_trades

    @staticmethod
    def best_trade_exact_out(
        pools: Sequence[Pool],
        token_in: Token,
        amount_out: TokenAmount,
        max_num_results: Optional[int] = None,
        max_hops: Optional[int] = None,
        current_pools: Sequence[Pool] = (),
        next_amount_out: Optional[TokenAmount] = None,
        best_trades: Optional[List["Trade"]] = None
    ) -> List["Trade"]:
        """주어진 풀들로 만들 수 있는 exact output 거래 중 입력이 작은 순서로 최대 max_num_results개

        출력 토큰에서 거꾸로 경로를 확장합니다.
        """
        if max_num_results is None:
            max_num_results = settings.BEST_TRADE_MAX_RESULTS
        if max_hops is None:
            max_hops = settings.BEST_TRADE_MAX_HOPS
        if best_trades is None:
            best_trades = []

        if not pools:
            raise InvalidInputError("탐색할 풀이 없습니다")
        if max_hops <= 0:
            raise InvalidInputError(f"max_hops는 양수여야 합니다: {max_hops}")
        if next_amount_out is None and current_pools:
            raise InvalidInputError("중간 경로에는 next_amount_out이 필요합니다")

        amount = next_amount_out if next_amount_out is not None else amount_out
        for i, pool in enumerate(pools):
            if not pool.involves_token(amount.token):
                continue
            try:
                amount_in, _ = pool.get_input_amount(amount)
            except (InsufficientLiquidityError, InsufficientReservesOrLiquidityError):
                continue

            if amount_in.token.equals(token_in):
                trade = Trade.from_route(
                    Route([pool] + list(current_pools), token_in, amount_out.token),
                    amount_out,
                    TradeType.EXACT_OUTPUT,
                )
                _sorted_insert(best_trades, trade, max_num_results)
            elif max_hops > 1 and len(pools) > 1:
                Trade.best_trade_exact_out(
                    list(pools[:i]) + list(pools[i + 1:]),
                    token_in,
                    amount_out,
                    max_num_results,
                    max_hops - 1,
                    [pool] + list(current_pools),
                    amount_in,
                    best_trades,
                )
        return best_trades


def trade_comparator(a: Trade, b: Trade) -> int:
    """출력이 큰 거래, 같으면 입력이 작은 거래, 같으면 홉이 적은 거래가 앞"""
    if not (a.input_token.equals(b.input_token) and a.output_token.equals(b.output_token)):
        raise InvalidInputError("입출력 토큰이 같은 거래끼리만 비교할 수 있습니다")

    a_out, b_out = a.output_amount.amount, b.output_amount.amount
    if a_out != b_out:
        return -1 if a_out > b_out else 1

    a_in, b_in = a.input_amount.amount, b.input_amount.amount
    if a_in != b_in:
        return -1 if a_in < b_in else 1

    a_hops = sum(len(swap.route.token_path) for swap in a.swaps)
    b_hops = sum(len(swap.route.token_path) for swap in b.swaps)
    return a_hops - b_hops


def _sorted_insert(trades: List[Trade], trade: Trade, max_size: int) -> None:
    """정렬 상태를 유지하며 삽입하고 max_size개로 자름"""
    if max_size <= 0:
        raise InvalidInputError(f"max_num_results는 양수여야 합니다: {max_size}")
    trades.append(trade)
    trades.sort(key=functools.cmp_to_key(trade_comparator))
    del trades[max_size:]
