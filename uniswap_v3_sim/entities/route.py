"""
Route - 여러 풀을 잇는 스왑 경로

인접한 풀은 토큰 하나를 공유해야 하며, 각 풀의 출력이 다음 풀의 입력이 됩니다.
견적 계산은 풀을 변경하지 않습니다 (풀의 get_output_amount가 복사본을 반환).

References:
- Uniswap V3 SDK: entities/route.ts
"""

import logging
from fractions import Fraction
from typing import List, Sequence

from ..data.types import Token, TokenAmount
from ..exceptions import (
    InsufficientLiquidityError,
    InsufficientReservesOrLiquidityError,
    InvalidInputError,
)
from .pool import Pool

logger = logging.getLogger(__name__)


class Route:
    """스왑 경로

    사용법:
        route = Route([weth_usdc, usdc_dai], weth, dai)
        amount_out = route.get_output_amount(TokenAmount(weth, 10 ** 18))
    """

    def __init__(self, pools: Sequence[Pool], input_token: Token, output_token: Token):
        if not pools:
            raise InvalidInputError("경로에는 풀이 하나 이상 있어야 합니다")
        if not pools[0].involves_token(input_token):
            raise InvalidInputError(f"첫 풀에 입력 토큰 {input_token.symbol}이 없습니다")
        if not pools[-1].involves_token(output_token):
            raise InvalidInputError(f"마지막 풀에 출력 토큰 {output_token.symbol}이 없습니다")

        token_path: List[Token] = [input_token]
        for i, pool in enumerate(pools):
            current = token_path[-1]
            if not pool.involves_token(current):
                raise InvalidInputError(f"{i}번째 풀이 이전 토큰 {current.symbol}과 연결되지 않습니다")
            token_path.append(pool.token1 if current.equals(pool.token0) else pool.token0)

        if not token_path[-1].equals(output_token):
            raise InvalidInputError(
                f"경로의 끝 {token_path[-1].symbol}이 출력 토큰 {output_token.symbol}과 다릅니다"
            )

        self.pools: List[Pool] = list(pools)
        self.token_path: List[Token] = token_path
        self.input_token = input_token
        self.output_token = output_token

    def __repr__(self) -> str:
        return "Route(" + " -> ".join(t.symbol for t in self.token_path) + ")"

    @property
    def mid_price(self) -> Fraction:
        """입력 토큰 1 단위당 출력 토큰 (현재 풀 가격들의 곱)"""
        price = Fraction(1)
        for token, pool in zip(self.token_path, self.pools):
            price *= pool.price_of(token)
        return price

    def get_output_amount(self, input_amount: TokenAmount) -> TokenAmount:
        """exact input 견적을 경로 전체에 전파

        Raises:
            InsufficientReservesOrLiquidityError: 어느 풀이든 입력을 모두 소화하지 못한 경우
        """
        if not input_amount.token.equals(self.input_token):
            raise InvalidInputError(f"입력 토큰이 경로와 다릅니다: {input_amount.token.symbol}")

        amount = input_amount
        for pool in self.pools:
            try:
                amount, _ = pool.get_output_amount(amount)
            except InsufficientLiquidityError as exc:
                raise InsufficientReservesOrLiquidityError(f"{pool!r}: {exc}") from exc
        logger.debug("%r: %d in -> %d out", self, input_amount.amount, amount.amount)
        return amount

    def get_input_amount(self, output_amount: TokenAmount) -> TokenAmount:
        """exact output 견적을 경로 역방향으로 전파"""
        if not output_amount.token.equals(self.output_token):
            raise InvalidInputError(f"출력 토큰이 경로와 다릅니다: {output_amount.token.symbol}")

        amount = output_amount
        for pool in reversed(self.pools):
            try:
                amount, _ = pool.get_input_amount(amount)
            except InsufficientLiquidityError as exc:
                raise InsufficientReservesOrLiquidityError(f"{pool!r}: {exc}") from exc
        logger.debug("%r: %d in <- %d out", self, amount.amount, output_amount.amount)
        return amount
