"""统一的取整工具：整数百分比与一位小数评分各一个入口。"""

import math


def round_half_up(value: float, digits: int = 0) -> float:
    """四舍五入（.5 一律向上），避免 Python 内置 ``round`` 的银行家舍入。"""

    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def round_percent(value: float) -> int:
    """完成率、平均分等整数展示值。"""

    return int(round_half_up(value))


def round_rating(value: float) -> float:
    """评价总分保留一位小数。"""

    return round_half_up(value, 1)


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))
