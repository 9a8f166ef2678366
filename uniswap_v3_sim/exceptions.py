"""
Uniswap V3 시뮬레이터 예외 정의

모든 예외는 입력값의 결정적 함수입니다 (일시적 오류 없음).
따라서 이 계층은 재시도하지 않습니다.
"""


class UniswapV3SimError(Exception):
    """시뮬레이터 기본 예외"""
    pass


class InvalidInputError(UniswapV3SimError, ValueError):
    """범위를 벗어난 tick/price/index, 또는 bit scan에 0 입력"""
    pass


class InvalidTickListError(InvalidInputError):
    """정렬되지 않았거나 tick spacing이 맞지 않는 tick 목록"""
    pass


class MathOverflowError(UniswapV3SimError, ArithmeticError):
    """고정폭 산술 결과가 표현 가능한 범위를 초과"""
    pass


class LiquidityOverflowError(MathOverflowError):
    """유동성이 uint128 또는 틱당 최대 유동성을 초과"""
    pass


class LiquidityUnderflowError(UniswapV3SimError, ArithmeticError):
    """유동성이 음수가 됨"""
    pass


class InsufficientLiquidityError(UniswapV3SimError):
    """스왑이 진행될 수 없거나 mint/burn이 경계를 위반"""
    pass


class InvalidPriceLimitError(UniswapV3SimError):
    """sqrtPriceLimitX96이 현재 가격의 잘못된 쪽에 있거나 전역 범위를 벗어남"""
    pass


class InsufficientReservesOrLiquidityError(UniswapV3SimError):
    """Route/Trade 수준: 풀이 요청한 수량을 충족할 수 없음"""
    pass


class TickNotFoundError(UniswapV3SimError):
    """tick 데이터 제공자가 요청에 응답할 수 없음"""
    pass
