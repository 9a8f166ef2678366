"""
Pool 테스트

스왑 루프(틱 크로싱, 가격 한도, 수수료 누적), mint/burn/collect,
그리고 실패한 연산이 풀 상태를 바꾸지 않는지 검증합니다.
"""

import pytest

from ..constants import FeeAmount, MIN_SQRT_RATIO, Q96
from ..data.types import Tick, Token, TokenAmount
from ..entities.pool import Pool, tick_spacing_to_max_liquidity_per_tick
from ..exceptions import (
    InsufficientLiquidityError,
    InvalidInputError,
    InvalidPriceLimitError,
    LiquidityOverflowError,
    LiquidityUnderflowError,
)
from ..math.tick_math import get_sqrt_ratio_at_tick
from ..ticks import TickListDataProvider

ONE_ETHER = 10 ** 18


def pool_state(pool):
    """비교용 풀 상태 스냅샷"""
    return (
        pool.sqrt_price_x96,
        pool.tick_current,
        pool.liquidity,
        pool.fee_growth_global_0_x128,
        pool.fee_growth_global_1_x128,
        list(pool.ticks.initialized_ticks()),
        dict(pool.positions),
    )


@pytest.fixture
def full_range_pool(pool_factory, token0, token1):
    return pool_factory(token0, token1, positions=((None, None, ONE_ETHER),))


@pytest.fixture
def layered_pool(pool_factory, token0, token1):
    """전체 범위 1e18 + [-60, 60] 1e20"""
    return pool_factory(token0, token1, positions=((None, None, ONE_ETHER), (-60, 60, 100 * ONE_ETHER)))


class TestPoolConstruction:
    """Pool 생성 테스트"""

    def test_tokens_are_sorted(self, token0, token1):
        pool = Pool(token1, token0, FeeAmount.MEDIUM, Q96, 0)
        assert pool.token0 == token0
        assert pool.token1 == token1
        assert pool.tick_spacing == 60
        assert pool.tick_current == 0

    def test_same_token(self, token0):
        with pytest.raises(InvalidInputError):
            Pool(token0, token0, FeeAmount.MEDIUM, Q96, 0)

    def test_invalid_fee(self, token0, token1):
        with pytest.raises(InvalidInputError):
            Pool(token0, token1, 1_000_000, Q96, 0, tick_spacing=60)

    def test_invalid_price(self, token0, token1):
        with pytest.raises(InvalidInputError):
            Pool(token0, token1, FeeAmount.MEDIUM, MIN_SQRT_RATIO - 1, 0)

    def test_tick_must_match_price(self, token0, token1):
        with pytest.raises(InvalidInputError):
            Pool(token0, token1, FeeAmount.MEDIUM, Q96, 0, tick_current=5)

    def test_tick_at_upper_boundary_accepted(self, token0, token1):
        """아래로 틱을 넘은 직후 상태: 가격이 tick_current + 1 경계"""
        pool = Pool(token0, token1, FeeAmount.MEDIUM, Q96, 0, tick_current=-1)
        assert pool.tick_current == -1

    def test_from_dict(self, token0, token1):
        tokens = [
            {"id": t.id, "symbol": t.symbol, "name": t.name, "decimals": str(t.decimals)}
            for t in (token0, token1)
        ]
        data = {
            "id": "0xpool",
            "feeTier": "3000",
            "tick": "0",
            "sqrtPrice": str(Q96),
            "liquidity": str(ONE_ETHER),
            "token0": tokens[0],
            "token1": tokens[1],
        }
        ticks = [
            {"tickIdx": "-600", "liquidityGross": str(ONE_ETHER), "liquidityNet": str(ONE_ETHER)},
            {"tickIdx": "600", "liquidityGross": str(ONE_ETHER), "liquidityNet": str(-ONE_ETHER)},
        ]
        pool = Pool.from_dict(data, ticks)
        assert pool.id == "0xpool"
        assert pool.fee == 3000
        assert [t.tick_idx for t in pool.ticks.initialized_ticks()] == [-600, 600]

        amount_out, _ = pool.get_output_amount(TokenAmount(token0, 10 ** 15))
        assert 0 < amount_out.amount < 10 ** 15

    @pytest.mark.parametrize("spacing, expected", [
        (10, 1917569901783203986719870431555990),
        (60, 11505743598341114571880798222544994),
        (200, 38350317471085141830651933667504588),
        (887272, 113427455640312821154458202477256070485),
    ])
    def test_max_liquidity_per_tick(self, spacing, expected):
        assert tick_spacing_to_max_liquidity_per_tick(spacing) == expected


class TestPoolPrices:
    def test_price_one(self, full_range_pool, token0, token1):
        assert full_range_pool.token0_price == 1
        assert full_range_pool.token1_price == 1
        assert full_range_pool.price_of(token0) == 1

    def test_price_of_foreign_token(self, full_range_pool, token2):
        with pytest.raises(InvalidInputError):
            full_range_pool.price_of(token2)

    def test_involves_token(self, full_range_pool, token0, token2):
        assert full_range_pool.involves_token(token0)
        assert not full_range_pool.involves_token(token2)


class TestSwap:
    """스왑 테스트"""

    def test_exact_input_small_swap(self, pool_factory, token0, token1):
        """L = 1e9, fee 0.3%, token0 1000 입력: 가격 하락, 출력은 입력보다 작음"""
        pool = pool_factory(token0, token1, positions=((None, None, 10 ** 9),))
        result = pool.simulate_swap(True, 1000)

        assert result.amount0 == 1000
        assert 0 < -result.amount1 < 1000
        assert result.tick < 0
        assert result.sqrt_price_x96 < Q96
        assert result.amount_specified_remaining == 0
        assert result.fee_amount >= 3

    def test_one_for_zero_raises_price(self, full_range_pool):
        result = full_range_pool.swap(False, ONE_ETHER // 100)
        assert full_range_pool.sqrt_price_x96 > Q96
        assert full_range_pool.tick_current >= 0
        assert result.amount1 == ONE_ETHER // 100
        assert result.amount0 < 0

    def test_exact_output(self, full_range_pool, token0, token1):
        amount_in, _ = full_range_pool.get_input_amount(TokenAmount(token1, 10 ** 15))
        assert amount_in.token == token0
        assert amount_in.amount > 10 ** 15

        result = full_range_pool.simulate_swap(True, -10 ** 15)
        assert result.amount1 == -10 ** 15
        assert result.amount0 == amount_in.amount

    def test_exact_input_output_agree(self, full_range_pool, token0, token1):
        """exact output으로 구한 입력을 exact input으로 넣으면 최소한 같은 출력"""
        amount_in, _ = full_range_pool.get_input_amount(TokenAmount(token1, 10 ** 16))
        amount_out, _ = full_range_pool.get_output_amount(amount_in)
        assert amount_out.amount >= 10 ** 16

    def test_crosses_tick(self, layered_pool):
        result = layered_pool.simulate_swap(True, ONE_ETHER)

        assert result.tick < -60
        assert result.liquidity == ONE_ETHER
        assert [t.tick_idx for t in result.crossed_ticks] == [-60]
        assert any(step.crossed and step.tick_next == -60 for step in result.steps)

        # mint 시점의 f_o = 0이므로 크로싱 후 f_o는 그 시점의 f_g
        crossed = result.crossed_ticks[0]
        assert 0 < crossed.fee_growth_outside_0_x128 <= result.fee_growth_global_0_x128
        assert result.fee_growth_global_0_x128 > 0
        assert result.fee_growth_global_1_x128 == 0

    def test_cross_back_restores_liquidity(self, layered_pool):
        layered_pool.swap(True, ONE_ETHER)
        assert layered_pool.liquidity == ONE_ETHER

        layered_pool.swap(False, 6 * 10 ** 17)
        assert -60 <= layered_pool.tick_current < 60
        assert layered_pool.liquidity == 101 * ONE_ETHER

    def test_price_limit_stops_swap(self, full_range_pool):
        limit = get_sqrt_ratio_at_tick(-10)
        result = full_range_pool.simulate_swap(True, ONE_ETHER, limit)
        assert result.sqrt_price_x96 == limit
        assert result.amount_specified_remaining > 0
        assert result.tick == -10

    @pytest.mark.parametrize("zero_for_one, limit", [
        (True, Q96),
        (True, MIN_SQRT_RATIO),
        (False, Q96),
        (False, Q96 - 1),
    ])
    def test_invalid_price_limit(self, full_range_pool, zero_for_one, limit):
        before = pool_state(full_range_pool)
        with pytest.raises(InvalidPriceLimitError):
            full_range_pool.swap(zero_for_one, ONE_ETHER, limit)
        assert pool_state(full_range_pool) == before

    def test_zero_amount(self, full_range_pool):
        with pytest.raises(InvalidInputError):
            full_range_pool.simulate_swap(True, 0)

    def test_no_liquidity(self, token0, token1):
        pool = Pool(token0, token1, FeeAmount.MEDIUM, Q96, 0)
        before = pool_state(pool)
        with pytest.raises(InsufficientLiquidityError):
            pool.swap(True, ONE_ETHER)
        assert pool_state(pool) == before

    def test_failure_while_crossing_commits_nothing(self, token0, token1):
        """크로싱 중 add_delta가 실패하면 앞 구간의 진행도 반영되지 않음"""
        # 활성 유동성(1e18)보다 큰 liquidity_net: -60을 아래로 넘으면 음수가 됨
        ticks = TickListDataProvider(
            [Tick(-60, 10 * ONE_ETHER, 10 * ONE_ETHER), Tick(60, 10 * ONE_ETHER, -10 * ONE_ETHER)],
            60,
        )
        pool = Pool(token0, token1, FeeAmount.MEDIUM, Q96, ONE_ETHER, ticks=ticks)
        before = pool_state(pool)

        with pytest.raises(LiquidityUnderflowError):
            pool.swap(True, ONE_ETHER)
        assert pool_state(pool) == before

        # 크로싱 전에 끝나는 스왑은 정상 처리
        result = pool.swap(True, 10 ** 12)
        assert -60 <= result.tick < 0

    def test_round_trip_never_gains(self, layered_pool):
        """token0 → token1 → token0 왕복은 처음 수량 이하"""
        for amount in (10 ** 6, ONE_ETHER // 3, 5 * ONE_ETHER):
            pool = layered_pool.clone()
            first = pool.swap(True, amount)
            second = pool.swap(False, -first.amount1)
            assert -second.amount0 <= amount

    def test_fee_growth_is_monotonic(self, full_range_pool, rng):
        last0 = last1 = 0
        for _ in range(20):
            full_range_pool.swap(rng.choice((True, False)), rng.randrange(10 ** 12, 10 ** 16))
            assert full_range_pool.fee_growth_global_0_x128 >= last0
            assert full_range_pool.fee_growth_global_1_x128 >= last1
            last0 = full_range_pool.fee_growth_global_0_x128
            last1 = full_range_pool.fee_growth_global_1_x128

    def test_providers_give_identical_results(self, layered_pool):
        tick_list = TickListDataProvider(list(layered_pool.ticks.initialized_ticks()), layered_pool.tick_spacing)
        twin = Pool(
            layered_pool.token0,
            layered_pool.token1,
            layered_pool.fee,
            layered_pool.sqrt_price_x96,
            layered_pool.liquidity,
            ticks=tick_list,
        )
        for zero_for_one in (True, False):
            for amount in (1000, ONE_ETHER, -10 ** 15, -ONE_ETHER // 2):
                a = layered_pool.simulate_swap(zero_for_one, amount)
                b = twin.simulate_swap(zero_for_one, amount)
                assert (a.amount0, a.amount1, a.sqrt_price_x96, a.tick, a.liquidity) == (
                    b.amount0, b.amount1, b.sqrt_price_x96, b.tick, b.liquidity
                )


class TestQuotes:
    """get_output_amount / get_input_amount 테스트"""

    def test_original_pool_unchanged(self, layered_pool, token0):
        before = pool_state(layered_pool)
        amount_out, after = layered_pool.get_output_amount(TokenAmount(token0, ONE_ETHER))

        assert pool_state(layered_pool) == before
        assert after.tick_current < -60
        assert after.liquidity == ONE_ETHER
        # 크로싱된 틱은 복사본에만 반영
        assert after.ticks.get_tick(-60) != layered_pool.ticks.get_tick(-60)

    def test_quoted_pool_has_own_ticks(self, layered_pool, token0):
        """크로싱이 없는 견적이라도 반환된 풀의 틱 데이터는 원래 풀과 분리됨"""
        amount_out, after = layered_pool.get_output_amount(TokenAmount(token0, 1000))
        assert after.tick_current >= -60
        tick_before = layered_pool.ticks.get_tick(-60)
        initialized_before = list(layered_pool.ticks.initialized_ticks())

        after.swap(True, ONE_ETHER)
        assert after.ticks.get_tick(-60) != tick_before
        assert layered_pool.ticks.get_tick(-60) == tick_before

        after.mint(-600, 600, ONE_ETHER)
        assert after.ticks.get_tick(600).liquidity_gross == ONE_ETHER
        assert layered_pool.ticks.get_tick(600).liquidity_gross == 0
        assert list(layered_pool.ticks.initialized_ticks()) == initialized_before

    def test_input_quote_has_own_ticks(self, layered_pool, token1):
        amount_in, after = layered_pool.get_input_amount(TokenAmount(token1, 1000))
        after.mint(-600, 600, ONE_ETHER)
        assert layered_pool.ticks.get_tick(-600).liquidity_gross == 0

    def test_quote_matches_swap(self, layered_pool, token0):
        amount_out, after = layered_pool.get_output_amount(TokenAmount(token0, ONE_ETHER))
        result = layered_pool.swap(True, ONE_ETHER)
        assert amount_out.amount == -result.amount1
        assert after.sqrt_price_x96 == layered_pool.sqrt_price_x96

    def test_partial_fill_raises(self, pool_factory, token0, token1):
        pool = pool_factory(token0, token1, positions=((-60, 60, ONE_ETHER),))
        with pytest.raises(InsufficientLiquidityError):
            pool.get_output_amount(TokenAmount(token0, 10 ** 30))
        with pytest.raises(InsufficientLiquidityError):
            pool.get_input_amount(TokenAmount(token1, 10 ** 30))

    def test_partial_fill_allowed_with_limit(self, pool_factory, token0, token1):
        pool = pool_factory(token0, token1, positions=((-60, 60, ONE_ETHER),))
        limit = get_sqrt_ratio_at_tick(-120)
        amount_out, after = pool.get_output_amount(TokenAmount(token0, 10 ** 30), limit)
        assert amount_out.token == token1
        assert amount_out.amount > 0
        assert after.sqrt_price_x96 == limit
        assert after.liquidity == 0

    def test_foreign_token(self, full_range_pool, token2):
        with pytest.raises(InvalidInputError):
            full_range_pool.get_output_amount(TokenAmount(token2, 1000))


class TestMintBurnCollect:
    """mint / burn / collect 테스트"""

    def test_mint_in_range(self, token0, token1):
        pool = Pool(token0, token1, FeeAmount.MEDIUM, Q96, 0)
        amount0, amount1 = pool.mint(-60, 60, ONE_ETHER)
        assert amount0 > 0 and amount1 > 0
        assert pool.liquidity == ONE_ETHER
        assert pool.ticks.get_tick(-60).liquidity_net == ONE_ETHER
        assert pool.ticks.get_tick(60).liquidity_net == -ONE_ETHER
        assert pool.positions[(-60, 60)].liquidity == ONE_ETHER

    def test_mint_range_below_price_needs_token1_only(self, token0, token1):
        pool = Pool(token0, token1, FeeAmount.MEDIUM, Q96, 0)
        amount0, amount1 = pool.mint(-120, -60, ONE_ETHER)
        assert amount0 == 0
        assert amount1 > 0
        assert pool.liquidity == 0

    def test_mint_range_above_price_needs_token0_only(self, token0, token1):
        pool = Pool(token0, token1, FeeAmount.MEDIUM, Q96, 0)
        amount0, amount1 = pool.mint(60, 120, ONE_ETHER)
        assert amount0 > 0
        assert amount1 == 0
        assert pool.liquidity == 0

    @pytest.mark.parametrize("lower, upper", [(60, 60), (60, -60), (-30, 60), (-887280, 60)])
    def test_invalid_ticks(self, full_range_pool, lower, upper):
        with pytest.raises(InvalidInputError):
            full_range_pool.mint(lower, upper, ONE_ETHER)

    def test_non_positive_mint(self, full_range_pool):
        with pytest.raises(InvalidInputError):
            full_range_pool.mint(-60, 60, 0)

    def test_max_liquidity_per_tick_is_atomic(self, token0, token1):
        pool = Pool(token0, token1, FeeAmount.MEDIUM, Q96, 0)
        pool.mint(-120, 60, pool.max_liquidity_per_tick - 5)
        before = pool_state(pool)

        # 하한 틱 -60은 괜찮지만 상한 틱 60이 최대값을 넘음
        with pytest.raises(LiquidityOverflowError):
            pool.mint(-60, 60, 10)
        assert pool_state(pool) == before
        assert not pool.ticks.get_tick(-60).initialized

    def test_burn_returns_rounded_down_amounts(self, token0, token1):
        pool = Pool(token0, token1, FeeAmount.MEDIUM, Q96, 0)
        minted = pool.mint(-60, 60, ONE_ETHER)
        burned = pool.burn(-60, 60, ONE_ETHER)

        assert burned[0] <= minted[0] and burned[1] <= minted[1]
        assert minted[0] - burned[0] <= 1 and minted[1] - burned[1] <= 1
        assert pool.liquidity == 0
        assert not pool.ticks.get_tick(-60).initialized
        assert not pool.ticks.get_tick(60).initialized

        position = pool.positions[(-60, 60)]
        assert (position.tokens_owed_0, position.tokens_owed_1) == burned

    def test_collect(self, token0, token1):
        pool = Pool(token0, token1, FeeAmount.MEDIUM, Q96, 0)
        pool.mint(-60, 60, ONE_ETHER)
        burned = pool.burn(-60, 60, ONE_ETHER)

        assert pool.collect(-60, 60, 1, 2) == (1, 2)
        assert pool.collect(-60, 60) == (burned[0] - 1, burned[1] - 2)
        assert pool.collect(-60, 60) == (0, 0)
        assert pool.collect(-600, 600) == (0, 0)

    def test_burn_more_than_position(self, full_range_pool):
        full_range_pool.mint(-60, 60, 1000)
        before = pool_state(full_range_pool)
        with pytest.raises(InsufficientLiquidityError):
            full_range_pool.burn(-60, 60, 1001)
        assert pool_state(full_range_pool) == before

    def test_poke_empty_position(self, full_range_pool):
        with pytest.raises(InsufficientLiquidityError):
            full_range_pool.burn(-60, 60, 0)

    def test_fees_accrue_to_in_range_position(self, token0, token1):
        pool = Pool(token0, token1, FeeAmount.MEDIUM, Q96, 0)
        pool.mint(-600, 600, ONE_ETHER)
        result = pool.swap(True, 10 ** 15)

        pool.burn(-600, 600, 0)
        position = pool.positions[(-600, 600)]
        assert result.fee_amount - len(result.steps) - 1 <= position.tokens_owed_0 <= result.fee_amount
        assert position.tokens_owed_1 == 0

    def test_out_of_range_position_earns_nothing(self, token0, token1):
        pool = Pool(token0, token1, FeeAmount.MEDIUM, Q96, 0)
        pool.mint(-600, 600, ONE_ETHER)
        pool.mint(600, 1200, ONE_ETHER)
        pool.swap(True, 10 ** 15)

        pool.burn(600, 1200, 0)
        position = pool.positions[(600, 1200)]
        assert (position.tokens_owed_0, position.tokens_owed_1) == (0, 0)

    def test_clone_is_independent(self, full_range_pool):
        cloned = full_range_pool.clone()
        cloned.mint(-60, 60, ONE_ETHER)
        cloned.swap(True, 10 ** 15)
        assert (-60, 60) not in full_range_pool.positions
        assert not full_range_pool.ticks.get_tick(-60).initialized
        assert full_range_pool.sqrt_price_x96 == Q96


def test_repr(full_range_pool):
    assert repr(full_range_pool).startswith("Pool(T0/T1")


def test_token_address_order():
    a = Token(id="0xB000000000000000000000000000000000000000", symbol="B", name="B", decimals=6)
    b = Token(id="0x0a00000000000000000000000000000000000000", symbol="A", name="A", decimals=18)
    pool = Pool(a, b, FeeAmount.LOW, Q96, 0)
    assert pool.token0.symbol == "A"
    assert pool.tick_spacing == 10
