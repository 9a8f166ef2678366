"""
Uniswap V3 데이터 타입 정의

시뮬레이션에 필요한 값 타입을 Python dataclass로 정의.
모든 숫자 필드는 온체인 정밀도를 위해 int 타입 사용.
from_dict는 Subgraph 형식의 dict(외부에서 이미 조회된 데이터)를 변환할 뿐
네트워크 I/O는 하지 않습니다.
"""

from dataclasses import dataclass
from typing import NamedTuple

from ..constants import MAX_TICK, MIN_TICK
from ..exceptions import InvalidInputError


@dataclass(frozen=True)
class Token:
    """ERC20 토큰 정보"""
    id: str  # 컨트랙트 주소
    symbol: str
    name: str
    decimals: int

    @property
    def address(self) -> int:
        return int(self.id, 16)

    def equals(self, other: "Token") -> bool:
        return self.address == other.address

    def sorts_before(self, other: "Token") -> bool:
        """주소 오름차순 정렬에서 self가 앞이면 True (token0 판정)"""
        if self.equals(other):
            raise InvalidInputError(f"같은 토큰끼리는 정렬할 수 없습니다: {self.id}")
        return self.address < other.address

    @classmethod
    def from_dict(cls, data: dict) -> "Token":
        return cls(
            id=data["id"],
            symbol=data["symbol"],
            name=data["name"],
            decimals=int(data["decimals"])
        )


class TokenAmount(NamedTuple):
    """토큰과 원시 수량 (최소 단위)"""
    token: Token
    amount: int

    def to_float(self) -> float:
        """Human-readable 수량"""
        return self.amount / (10 ** self.token.decimals)


@dataclass(frozen=True)
class Tick:
    """Tick-Indexed State (Section 6.3, Table 2)

    - tickIdx: 틱 인덱스
    - liquidityGross: 해당 틱을 경계로 하는 총 유동성
    - liquidityNet: 틱 크로싱 시 유동성 변화량 (ΔL)
    - feeGrowthOutside0X128: 틱 외부 누적수수료 token0 (f_o,0)
    - feeGrowthOutside1X128: 틱 외부 누적수수료 token1 (f_o,1)
    """
    tick_idx: int
    liquidity_gross: int = 0
    liquidity_net: int = 0
    fee_growth_outside_0_x128: int = 0  # f_o,0
    fee_growth_outside_1_x128: int = 0  # f_o,1

    def __post_init__(self):
        if self.tick_idx < MIN_TICK or self.tick_idx > MAX_TICK:
            raise InvalidInputError(f"틱이 유효 범위를 벗어났습니다: {self.tick_idx}")
        if self.liquidity_gross < 0:
            raise InvalidInputError(f"liquidity_gross는 음수일 수 없습니다: {self.liquidity_gross}")

    @property
    def initialized(self) -> bool:
        return self.liquidity_gross > 0

    @classmethod
    def from_dict(cls, data: dict) -> "Tick":
        return cls(
            tick_idx=int(data["tickIdx"]),
            liquidity_gross=int(data.get("liquidityGross", 0)),
            liquidity_net=int(data.get("liquidityNet", 0)),
            fee_growth_outside_0_x128=int(data.get("feeGrowthOutside0X128", 0)),
            fee_growth_outside_1_x128=int(data.get("feeGrowthOutside1X128", 0)),
        )


@dataclass(frozen=True)
class PoolSnapshot:
    """외부에서 조회한 Pool 상태 스냅샷

    Global State (Section 6.2, Table 1):
    - liquidity: 현재 가격에서 활성화된 총 유동성
    - sqrtPrice: 현재 √가격 (Q96 인코딩)
    - tick: 현재 틱 인덱스
    - feeGrowthGlobal0X128 / feeGrowthGlobal1X128: 단위유동성당 누적수수료 (Q128)
    """
    id: str  # Pool 컨트랙트 주소
    fee_tier: int  # 수수료 티어 (100, 500, 3000, 10000 pips)
    tick: int  # 현재 틱 인덱스 (i_c)
    sqrt_price: int  # sqrtPriceX96
    liquidity: int  # 현재 활성 유동성 (L)
    fee_growth_global_0_x128: int  # f_g,0
    fee_growth_global_1_x128: int  # f_g,1
    token0: Token
    token1: Token

    @classmethod
    def from_dict(cls, data: dict) -> "PoolSnapshot":
        return cls(
            id=data["id"],
            fee_tier=int(data["feeTier"]),
            tick=int(data["tick"]),
            sqrt_price=int(data["sqrtPrice"]),
            liquidity=int(data["liquidity"]),
            fee_growth_global_0_x128=int(data.get("feeGrowthGlobal0X128", 0)),
            fee_growth_global_1_x128=int(data.get("feeGrowthGlobal1X128", 0)),
            token0=Token.from_dict(data["token0"]),
            token1=Token.from_dict(data["token1"]),
        )


@dataclass(frozen=True)
class PositionInfo:
    """Position-Indexed State (Section 6.4, Table 3)

    - liquidity: 포지션의 유동성 (l)
    - feeGrowthInside0LastX128: 마지막 업데이트 시점의 범위 내 수수료 token0 (f_r,0(t_0))
    - feeGrowthInside1LastX128: 마지막 업데이트 시점의 범위 내 수수료 token1 (f_r,1(t_0))
    - tokensOwed0 / tokensOwed1: 수령 가능한 토큰 (수수료 + burn된 원금)
    """
    tick_lower: int  # i_l
    tick_upper: int  # i_u
    liquidity: int = 0  # l
    fee_growth_inside_0_last_x128: int = 0  # f_r,0(t_0)
    fee_growth_inside_1_last_x128: int = 0  # f_r,1(t_0)
    tokens_owed_0: int = 0
    tokens_owed_1: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "PositionInfo":
        return cls(
            tick_lower=int(data["tickLower"]),
            tick_upper=int(data["tickUpper"]),
            liquidity=int(data["liquidity"]),
            fee_growth_inside_0_last_x128=int(data.get("feeGrowthInside0LastX128", 0)),
            fee_growth_inside_1_last_x128=int(data.get("feeGrowthInside1LastX128", 0)),
            tokens_owed_0=int(data.get("tokensOwed0", 0)),
            tokens_owed_1=int(data.get("tokensOwed1", 0)),
        )
