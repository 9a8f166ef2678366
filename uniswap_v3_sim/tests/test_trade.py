"""
Route / Trade 테스트

경로 검증과 중간 가격, 여러 풀에 걸친 견적, 슬리피지 경계, 최적 경로 탐색을 검증합니다.
"""

from fractions import Fraction

import pytest

from ..constants import Q96
from ..data.types import TokenAmount
from ..entities.route import Route
from ..entities.trade import Trade, TradeType, trade_comparator
from ..exceptions import InsufficientReservesOrLiquidityError, InvalidInputError

ONE_ETHER = 10 ** 18


@pytest.fixture
def pool_01(pool_factory, token0, token1):
    return pool_factory(token0, token1)


@pytest.fixture
def pool_12(pool_factory, token1, token2):
    return pool_factory(token1, token2)


@pytest.fixture
def pool_02(pool_factory, token0, token2):
    """다른 풀보다 유동성이 100배 깊은 직접 경로"""
    return pool_factory(token0, token2, positions=((None, None, 100 * ONE_ETHER),))


@pytest.fixture
def pool_13_price_4(pool_factory, token1, token3):
    """token1 1개 = token3 4개"""
    return pool_factory(token1, token3, sqrt_price_x96=2 * Q96)


class TestRoute:
    """Route 테스트"""

    def test_token_path(self, pool_01, pool_12, token0, token1, token2):
        route = Route([pool_01, pool_12], token0, token2)
        assert route.token_path == [token0, token1, token2]
        assert repr(route) == "Route(T0 -> T1 -> T2)"

    def test_empty(self, token0, token1):
        with pytest.raises(InvalidInputError):
            Route([], token0, token1)

    def test_input_not_in_first_pool(self, pool_01, token1, token2):
        with pytest.raises(InvalidInputError):
            Route([pool_01], token2, token1)

    def test_output_not_in_last_pool(self, pool_01, token0, token2):
        with pytest.raises(InvalidInputError):
            Route([pool_01], token0, token2)

    def test_pools_not_connected(self, pool_01, pool_02, token0, token2):
        # token0 → token1 다음 풀에 token1이 없음
        with pytest.raises(InvalidInputError):
            Route([pool_01, pool_02], token0, token2)

    def test_path_end_mismatch(self, pool_01, pool_12, token0, token1):
        with pytest.raises(InvalidInputError):
            Route([pool_01, pool_12], token0, token1)

    def test_mid_price(self, pool_01, pool_13_price_4, token0, token3):
        route = Route([pool_01, pool_13_price_4], token0, token3)
        assert route.mid_price == 4
        reverse = Route([pool_13_price_4, pool_01], token3, token0)
        assert reverse.mid_price == Fraction(1, 4)

    def test_output_chains_pools(self, pool_01, pool_12, token0, token1, token2):
        route = Route([pool_01, pool_12], token0, token2)
        amount_in = TokenAmount(token0, 10 ** 16)

        middle, _ = pool_01.get_output_amount(amount_in)
        expected, _ = pool_12.get_output_amount(middle)
        assert route.get_output_amount(amount_in) == expected
        # 견적은 풀을 바꾸지 않음
        assert pool_01.sqrt_price_x96 == Q96

    def test_input_chains_pools_backwards(self, pool_01, pool_12, token0, token2):
        route = Route([pool_01, pool_12], token0, token2)
        amount_out = TokenAmount(token2, 10 ** 16)

        middle, _ = pool_12.get_input_amount(amount_out)
        expected, _ = pool_01.get_input_amount(middle)
        assert route.get_input_amount(amount_out) == expected

    def test_wrong_input_token(self, pool_01, token0, token1):
        route = Route([pool_01], token0, token1)
        with pytest.raises(InvalidInputError):
            route.get_output_amount(TokenAmount(token1, 1000))

    def test_insufficient_liquidity(self, pool_factory, token0, token1):
        pool = pool_factory(token0, token1, positions=((-60, 60, ONE_ETHER),))
        route = Route([pool], token0, token1)
        with pytest.raises(InsufficientReservesOrLiquidityError):
            route.get_output_amount(TokenAmount(token0, 10 ** 30))
        with pytest.raises(InsufficientReservesOrLiquidityError):
            route.get_input_amount(TokenAmount(token1, 10 ** 30))


class TestTrade:
    """Trade 테스트"""

    def test_exact_in(self, pool_01, pool_12, token0, token2):
        route = Route([pool_01, pool_12], token0, token2)
        amount_in = TokenAmount(token0, 10 ** 16)
        trade = Trade.exact_in(route, amount_in)

        assert trade.trade_type == TradeType.EXACT_INPUT
        assert trade.route is route
        assert trade.input_amount == amount_in
        assert trade.output_amount == route.get_output_amount(amount_in)
        assert trade.execution_price == Fraction(trade.output_amount.amount, 10 ** 16)

    def test_exact_out(self, pool_01, pool_12, token0, token2):
        route = Route([pool_01, pool_12], token0, token2)
        amount_out = TokenAmount(token2, 10 ** 16)
        trade = Trade.exact_out(route, amount_out)

        assert trade.output_amount == amount_out
        assert trade.input_amount == route.get_input_amount(amount_out)
        assert trade.input_amount.amount > amount_out.amount

    def test_price_impact(self, pool_01, token0, token1):
        route = Route([pool_01], token0, token1)
        small = Trade.exact_in(route, TokenAmount(token0, 10 ** 12))
        large = Trade.exact_in(route, TokenAmount(token0, 10 ** 17))
        # 수수료 0.3%가 포함되므로 0.3% 이상
        assert small.price_impact >= Fraction(3, 1000)
        assert large.price_impact > small.price_impact

    def test_minimum_amount_out(self, pool_01, token0, token1):
        trade = Trade.exact_in(Route([pool_01], token0, token1), TokenAmount(token0, 10 ** 16))
        out = trade.output_amount.amount

        assert trade.minimum_amount_out(Fraction(0)).amount == out
        assert trade.minimum_amount_out(Fraction(5, 100)).amount == int(Fraction(out) / Fraction(105, 100))
        assert trade.minimum_amount_out(Fraction(5, 100), amount_out=1050).amount == 1000
        assert trade.maximum_amount_in(Fraction(5, 100)) == trade.input_amount

    def test_maximum_amount_in(self, pool_01, token0, token1):
        trade = Trade.exact_out(Route([pool_01], token0, token1), TokenAmount(token1, 10 ** 16))
        amount_in = trade.input_amount.amount

        assert trade.maximum_amount_in(Fraction(0)).amount == amount_in
        assert trade.maximum_amount_in(Fraction(5, 100)).amount == int(amount_in * Fraction(105, 100))
        assert trade.maximum_amount_in(Fraction(1, 10), amount_in=1000).amount == 1100
        assert trade.minimum_amount_out(Fraction(5, 100)) == trade.output_amount

    def test_worst_execution_price(self, pool_01, token0, token1):
        trade = Trade.exact_in(Route([pool_01], token0, token1), TokenAmount(token0, 10 ** 16))
        assert trade.worst_execution_price(Fraction(0)) == trade.execution_price
        assert trade.worst_execution_price(Fraction(1, 100)) < trade.execution_price

    def test_negative_slippage(self, pool_01, token0, token1):
        trade = Trade.exact_in(Route([pool_01], token0, token1), TokenAmount(token0, 10 ** 16))
        with pytest.raises(InvalidInputError):
            trade.minimum_amount_out(Fraction(-1, 100))

    def test_from_routes(self, pool_01, pool_02, pool_12, token0, token1):
        direct = Route([pool_01], token0, token1)
        via_token2 = Route([pool_02, pool_12], token0, token1)
        trade = Trade.from_routes(
            [(TokenAmount(token0, 10 ** 16), direct), (TokenAmount(token0, 2 * 10 ** 16), via_token2)],
            TradeType.EXACT_INPUT,
        )
        assert len(trade.swaps) == 2
        assert trade.input_amount.amount == 3 * 10 ** 16
        assert trade.output_amount.amount == sum(s.output_amount.amount for s in trade.swaps)
        with pytest.raises(InvalidInputError):
            trade.route

    def test_duplicate_pools(self, pool_01, token0, token1):
        route = Route([pool_01], token0, token1)
        amount = TokenAmount(token0, 10 ** 16)
        with pytest.raises(InvalidInputError):
            Trade.from_routes([(amount, route), (amount, route)], TradeType.EXACT_INPUT)

    def test_create_unchecked_trade(self, pool_01, token0, token1):
        route = Route([pool_01], token0, token1)
        trade = Trade.create_unchecked_trade(
            route, TokenAmount(token0, 100), TokenAmount(token1, 99), TradeType.EXACT_INPUT
        )
        assert trade.execution_price == Fraction(99, 100)
        with pytest.raises(InvalidInputError):
            Trade.create_unchecked_trade(
                route, TokenAmount(token1, 100), TokenAmount(token0, 99), TradeType.EXACT_INPUT
            )

    def test_zero_input_execution_price(self, pool_01, token0, token1):
        trade = Trade.create_unchecked_trade(
            Route([pool_01], token0, token1), TokenAmount(token0, 0), TokenAmount(token1, 0),
            TradeType.EXACT_INPUT,
        )
        with pytest.raises(InvalidInputError):
            trade.execution_price


class TestRoundTrip:
    """경로를 따라 갔다가 역경로로 돌아오면 처음 수량보다 늘지 않음"""

    def test_exact_in_then_reverse_route(self, pool_01, pool_12, token0, token2, rng):
        route = Route([pool_01, pool_12], token0, token2)
        for _ in range(10):
            amount_in = TokenAmount(token0, rng.randrange(10 ** 6, 10 ** 17))
            forward = Trade.exact_in(route, amount_in)

            # 정방향 거래가 실행된 뒤의 풀 상태로 역경로 구성
            middle, pool_01_after = pool_01.get_output_amount(amount_in)
            _, pool_12_after = pool_12.get_output_amount(middle)
            reverse = Route([pool_12_after, pool_01_after], token2, token0)

            back = Trade.exact_in(reverse, forward.output_amount)
            assert back.output_amount.amount <= amount_in.amount

            # 처음 수량을 되찾으려면 받은 것보다 많이 내야 함
            refund = Trade.exact_out(reverse, amount_in)
            assert refund.input_amount.amount >= forward.output_amount.amount

    def test_quotes_leave_pools_untouched(self, pool_01, pool_12, token0, token2, rng):
        route = Route([pool_01, pool_12], token0, token2)
        first = Trade.exact_in(route, TokenAmount(token0, 10 ** 16))
        for _ in range(5):
            Trade.exact_in(route, TokenAmount(token0, rng.randrange(10 ** 6, 10 ** 17)))
        assert Trade.exact_in(route, TokenAmount(token0, 10 ** 16)).output_amount == first.output_amount
        assert pool_01.sqrt_price_x96 == Q96
        assert pool_12.sqrt_price_x96 == Q96


class TestBestTrade:
    """best_trade_exact_in / best_trade_exact_out 테스트"""

    def test_exact_in_prefers_deep_direct_pool(self, pool_01, pool_12, pool_02, token0, token2):
        trades = Trade.best_trade_exact_in(
            [pool_01, pool_12, pool_02], TokenAmount(token0, 10 ** 16), token2, max_num_results=3, max_hops=3
        )
        assert len(trades) == 2
        assert trades[0].swaps[0].route.pools == [pool_02]
        assert trades[1].swaps[0].route.pools == [pool_01, pool_12]
        assert trades[0].output_amount.amount > trades[1].output_amount.amount
        assert all(t.input_amount.amount == 10 ** 16 for t in trades)

    def test_exact_in_max_hops(self, pool_01, pool_12, pool_02, token0, token2):
        trades = Trade.best_trade_exact_in(
            [pool_01, pool_12, pool_02], TokenAmount(token0, 10 ** 16), token2, max_hops=1
        )
        assert [t.swaps[0].route.pools for t in trades] == [[pool_02]]

    def test_exact_in_max_results(self, pool_01, pool_12, pool_02, token0, token2):
        trades = Trade.best_trade_exact_in(
            [pool_01, pool_12, pool_02], TokenAmount(token0, 10 ** 16), token2, max_num_results=1
        )
        assert len(trades) == 1
        assert trades[0].swaps[0].route.pools == [pool_02]

    def test_exact_in_skips_exhausted_pools(self, pool_factory, pool_02, token0, token2):
        shallow = pool_factory(token0, token2, fee=500, positions=((-10, 10, 1000),))
        trades = Trade.best_trade_exact_in([shallow, pool_02], TokenAmount(token0, 10 ** 16), token2)
        assert [t.swaps[0].route.pools for t in trades] == [[pool_02]]

    def test_exact_out(self, pool_01, pool_12, pool_02, token0, token2):
        amount_out = TokenAmount(token2, 10 ** 16)
        trades = Trade.best_trade_exact_out([pool_01, pool_12, pool_02], token0, amount_out)
        assert len(trades) == 2
        assert trades[0].swaps[0].route.pools == [pool_02]
        assert trades[0].input_amount.amount < trades[1].input_amount.amount
        assert all(t.output_amount == amount_out for t in trades)

    def test_no_pools(self, token0, token2):
        with pytest.raises(InvalidInputError):
            Trade.best_trade_exact_in([], TokenAmount(token0, 1000), token2)

    def test_invalid_max_hops(self, pool_02, token0, token2):
        with pytest.raises(InvalidInputError):
            Trade.best_trade_exact_in([pool_02], TokenAmount(token0, 1000), token2, max_hops=0)

    def test_comparator_rejects_different_pairs(self, pool_01, pool_02, token0, token1, token2):
        a = Trade.exact_in(Route([pool_01], token0, token1), TokenAmount(token0, 1000))
        b = Trade.exact_in(Route([pool_02], token0, token2), TokenAmount(token0, 1000))
        with pytest.raises(InvalidInputError):
            trade_comparator(a, b)

    def test_comparator_prefers_fewer_hops(self, pool_01, pool_12, pool_02, token0, token2):
        direct = Route([pool_02], token0, token2)
        two_hop = Route([pool_01, pool_12], token0, token2)
        a = Trade.create_unchecked_trade(direct, TokenAmount(token0, 100), TokenAmount(token2, 90),
                                         TradeType.EXACT_INPUT)
        b = Trade.create_unchecked_trade(two_hop, TokenAmount(token0, 100), TokenAmount(token2, 90),
                                         TradeType.EXACT_INPUT)
        assert trade_comparator(a, b) < 0
        assert trade_comparator(b, a) > 0
