"""
Bit Math - 최상위/최하위 비트 인덱스

Tick 비트맵 탐색과 getTickAtSqrtRatio의 log2 초기값에 사용.

References:
- Uniswap V3 Core: contracts/libraries/BitMath.sol
"""

from ..constants import UINT256_MAX
from ..exceptions import InvalidInputError


def most_significant_bit(x: int) -> int:
    """최상위 1비트의 인덱스 (0부터)

    x >= 2**msb 그리고 x < 2**(msb+1)

    Raises:
        InvalidInputError: x가 0 이하이거나 uint256을 초과하는 경우
    """
    if x <= 0 or x > UINT256_MAX:
        raise InvalidInputError(f"most_significant_bit: 양의 uint256이 필요합니다: {x}")
    return x.bit_length() - 1


def least_significant_bit(x: int) -> int:
    """최하위 1비트의 인덱스 (0부터)

    (x & 2**lsb) != 0 그리고 (x & (2**lsb - 1)) == 0

    Raises:
        InvalidInputError: x가 0 이하이거나 uint256을 초과하는 경우
    """
    if x <= 0 or x > UINT256_MAX:
        raise InvalidInputError(f"least_significant_bit: 양의 uint256이 필요합니다: {x}")
    return (x & -x).bit_length() - 1
