"""
数据验证工具

本模块提供通用的数据验证函数，用于检查输入数据的有效性。

使用指南:
=========

验证函数遵循以下约定：

1. is_* 函数返回布尔值，不抛出异常
2. ensure_* 函数在公共入口使用，违反契约时抛出 PathValidationError

示例:
    from autosteer_core.core.validators import is_finite, ensure_point_array

    points = ensure_point_array(raw, min_points=3, name='boundary')

设计原则:
=========

- 验证函数应该是纯函数，不修改输入
- is_* 函数应该快速执行，适合在控制循环中使用
"""

import numpy as np
from typing import Union, Optional
import logging

from .exceptions import PathValidationError

logger = logging.getLogger(__name__)


# =============================================================================
# 数值验证
# =============================================================================

def is_finite(value: Union[float, np.ndarray]) -> bool:
    """
    检查值是否为有限数（非 NaN、非 Inf）

    Args:
        value: 标量或数组

    Returns:
        True 如果所有值都是有限的
    """
    return bool(np.all(np.isfinite(value)))


def is_positive(value: float, allow_zero: bool = False) -> bool:
    """
    检查值是否为正数

    Args:
        value: 要检查的值
        allow_zero: 是否允许零

    Returns:
        True 如果值为正数（或零，如果 allow_zero=True）
    """
    if not np.isfinite(value):
        return False
    if allow_zero:
        return value >= 0
    return value > 0


def is_in_range(value: float, min_val: Optional[float], max_val: Optional[float]) -> bool:
    """检查值是否在指定范围内（None 表示无界）"""
    if not np.isfinite(value):
        return False
    if min_val is not None and value < min_val:
        return False
    if max_val is not None and value > max_val:
        return False
    return True


# =============================================================================
# 点数组验证
# =============================================================================

def ensure_point_array(points, min_points: int = 0, columns: Optional[int] = None,
                       name: str = 'points') -> np.ndarray:
    """
    将输入转换为 float64 点数组并检查契约

    接受 (N, 2) 的平面坐标或 (N, 3) 的带航向坐标。

    Args:
        points: 点序列，可以是列表、元组或 numpy 数组
        min_points: 最少点数
        columns: 要求的列数，None 表示 2 或 3 均可
        name: 用于错误消息的名称

    Returns:
        形状为 (N, 2) 或 (N, 3) 的新数组

    Raises:
        PathValidationError: 形状错误、包含非有限值或点数不足
    """
    try:
        arr = np.array(points, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise PathValidationError(f'{name}: 无法转换为数值数组 ({e})') from e

    if arr.size == 0:
        arr = arr.reshape(0, columns or 2)

    if arr.ndim != 2 or arr.shape[1] not in (2, 3):
        raise PathValidationError(f'{name}: 期望形状 (N, 2) 或 (N, 3)，实际为 {arr.shape}')

    if columns is not None and arr.shape[1] != columns:
        raise PathValidationError(f'{name}: 期望 {columns} 列，实际为 {arr.shape[1]}')

    if not is_finite(arr):
        raise PathValidationError(f'{name}: 包含 NaN 或 Inf')

    if len(arr) < min_points:
        raise PathValidationError(f'{name}: 至少需要 {min_points} 个点，实际为 {len(arr)}')

    return arr


def ensure_positive(value: float, name: str, allow_zero: bool = False) -> float:
    """检查参数为正的有限数，否则抛出 PathValidationError"""
    if not is_positive(value, allow_zero=allow_zero):
        bound = '>= 0' if allow_zero else '> 0'
        raise PathValidationError(f'{name} 必须 {bound}，实际为 {value}')
    return float(value)


# =============================================================================
# 导出列表
# =============================================================================

__all__ = [
    'is_finite',
    'is_positive',
    'is_in_range',
    'ensure_point_array',
    'ensure_positive',
]
