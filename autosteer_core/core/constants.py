"""
通用常量和基础数学函数定义

本模块定义了导航核心使用的通用常量和不依赖其他模块的基础数学函数。

常量分类:
=========

1. 数值稳定性常量 (Numerical Stability)
   - 用于避免除零、退化线段等问题

2. 兼容性哨兵值 (Legacy Sentinels)
   - 旧版执行器协议使用的特殊值，必须保持原样

3. 几何常量 (Geometry)
   - 方向角约定: 航向从正北顺时针测量，heading = atan2(dE, dN)

基础数学函数:
=============

本模块包含不依赖其他模块的基础数学函数（如角度归一化），
这些函数被放在这里以避免循环导入问题。

使用示例:
=========

    from autosteer_core.core.constants import (
        EPSILON, TWO_PI, LOST_LOCK_VALUE,
        normalize_angle, fold_heading_error
    )

    # 避免除零
    if seg_len_sq > EPSILON:
        u = numerator / seg_len_sq

    # 航向误差折叠
    error = fold_heading_error(steer_heading - path_heading)
"""

import numpy as np


# =============================================================================
# 基础数学函数 (不依赖其他模块，避免循环导入)
# =============================================================================

def normalize_angle(angle: float) -> float:
    """
    将角度归一化到 [-π, π] 范围

    使用 arctan2(sin, cos) 方法，数值稳定且高效。

    Args:
        angle: 输入角度 (弧度)

    Returns:
        归一化后的角度 (弧度)，范围 [-π, π]
    """
    return float(np.arctan2(np.sin(angle), np.cos(angle)))


def normalize_heading(angle: float) -> float:
    """将航向归一化到 [0, 2π) 范围"""
    angle = float(np.fmod(angle, TWO_PI))
    if angle < 0.0:
        angle += TWO_PI
    return angle


def fold_heading_error(error: float) -> float:
    """
    折叠航向误差到 [-π/2, π/2]

    先归一化到 (-π, π]，再将超过 90° 的误差反向折叠 ∓π。
    结果与行驶方向无关，方向由调用方单独处理。

    Args:
        error: 原始航向误差 (弧度)

    Returns:
        折叠后的航向误差 (弧度)
    """
    error = normalize_angle(error)
    if error > HALF_PI:
        error -= np.pi
    elif error < -HALF_PI:
        error += np.pi
    return float(error)


def heading_difference(heading1: float, heading2: float) -> float:
    """
    计算两个航向之间的无符号夹角，范围 [0, π]

    等价于 π - ||h1 - h2| - π|，用于判断方向是否一致。
    """
    return float(np.pi - abs(abs(heading1 - heading2) - np.pi))


# =============================================================================
# 数值稳定性常量
# =============================================================================

# 通用数值精度阈值
EPSILON = 1e-6

# 极小值，用于线段长度平方、交点判断等
EPSILON_SMALL = 1e-10

# 角度常量
TWO_PI = 2.0 * np.pi
HALF_PI = 0.5 * np.pi


# =============================================================================
# 兼容性哨兵值
# =============================================================================

# 失锁或无效线段时旧版输出使用的距离和转角值
LOST_LOCK_VALUE = 32000

# 横滚角不可用的哨兵值 (度)
ROLL_UNAVAILABLE = 88888

# 16 位有符号整数范围 (线路编码)
INT16_MIN = -32768
INT16_MAX = 32767


# =============================================================================
# 几何常量
# =============================================================================

# 面积换算
SQUARE_METERS_PER_HECTARE = 10000.0
SQUARE_METERS_PER_ACRE = 4046.86

# km/h -> m/s 换算系数 (Stanley 速度阻尼使用 0.277)
KMH_TO_MS = 0.277


# =============================================================================
# 导出列表
# =============================================================================

__all__ = [
    'normalize_angle',
    'normalize_heading',
    'fold_heading_error',
    'heading_difference',
    'EPSILON',
    'EPSILON_SMALL',
    'TWO_PI',
    'HALF_PI',
    'LOST_LOCK_VALUE',
    'ROLL_UNAVAILABLE',
    'INT16_MIN',
    'INT16_MAX',
    'SQUARE_METERS_PER_HECTARE',
    'SQUARE_METERS_PER_ACRE',
    'KMH_TO_MS',
]
