"""
Full Math - 512비트 중간값을 사용하는 곱셈-나눗셈

Solidity FullMath 라이브러리와 동일한 의미론. Python 정수는 임의 정밀도이므로
a * b는 정밀도 손실 없이 계산되고, 최종 몫만 uint256 폭을 검사합니다.

References:
- Uniswap V3 Core: contracts/libraries/FullMath.sol
- Uniswap V3 Core: contracts/libraries/UnsafeMath.sol
"""

from ..constants import UINT256_MAX
from ..exceptions import MathOverflowError


def mul_div(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator)

    Args:
        a: 피승수 (uint256)
        b: 승수 (uint256)
        denominator: 제수 (uint256, > 0)

    Returns:
        내림한 몫

    Raises:
        MathOverflowError: 제수가 0이거나 몫이 uint256을 초과하는 경우
    """
    if denominator == 0:
        raise MathOverflowError("mul_div: 제수가 0입니다")

    result = (a * b) // denominator
    if result > UINT256_MAX:
        raise MathOverflowError(f"mul_div: 결과가 uint256을 초과합니다 ({a} * {b} / {denominator})")
    return result


def mul_div_rounding_up(a: int, b: int, denominator: int) -> int:
    """ceil(a * b / denominator)

    Raises:
        MathOverflowError: 제수가 0이거나 올림한 몫이 uint256을 초과하는 경우
    """
    result = mul_div(a, b, denominator)
    if (a * b) % denominator > 0:
        if result >= UINT256_MAX:
            raise MathOverflowError("mul_div_rounding_up: 올림 결과가 uint256을 초과합니다")
        result += 1
    return result


def mul_div_rounding(a: int, b: int, denominator: int, rounding_up: bool) -> int:
    """rounding_up 플래그로 방향을 선택하는 mul_div"""
    if rounding_up:
        return mul_div_rounding_up(a, b, denominator)
    return mul_div(a, b, denominator)


def div_rounding_up(numerator: int, denominator: int) -> int:
    """numerator / denominator 올림 (UnsafeMath.divRoundingUp)"""
    if denominator == 0:
        raise MathOverflowError("div_rounding_up: 제수가 0입니다")
    result = numerator // denominator
    if numerator % denominator > 0:
        result += 1
    return result


# === uint256 랩어라운드 (Solidity unchecked 블록) ===

def wrapping_add(a: int, b: int) -> int:
    """(a + b) mod 2^256"""
    return (a + b) & UINT256_MAX


def wrapping_sub(a: int, b: int) -> int:
    """(a - b) mod 2^256

    fee growth 누산기는 포화되지 않고 순환하는 카운터이므로 차이는 항상
    이 함수로 계산해야 합니다.
    """
    return (a - b) & UINT256_MAX
