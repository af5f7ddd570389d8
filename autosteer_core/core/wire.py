"""
执行器定点数编码

旧版执行器协议使用 16 位有符号整数:
- 横向偏差以毫米为单位，四舍五入时远离零取整 (2.5 -> 3, -2.5 -> -3)
- 转角乘 100 后截断取整

失锁或无效线段时两者都发送 LOST_LOCK_VALUE。
"""
import numpy as np

from .constants import LOST_LOCK_VALUE, INT16_MIN, INT16_MAX


def round_half_away_from_zero(value: float) -> float:
    """四舍五入，0.5 远离零取整"""
    return float(np.copysign(np.floor(abs(value) + 0.5), value))


def _clamp_int16(value: float) -> int:
    return int(min(max(value, INT16_MIN), INT16_MAX))


def encode_distance_mm(cross_track_error: float) -> int:
    """横向偏差 (米) -> 毫米整数"""
    if not np.isfinite(cross_track_error):
        return LOST_LOCK_VALUE
    return _clamp_int16(round_half_away_from_zero(cross_track_error * 1000.0))


def encode_steer_angle(steer_angle_deg: float) -> int:
    """转角 (度) -> 转角 × 100 整数，向零截断"""
    if not np.isfinite(steer_angle_deg):
        return LOST_LOCK_VALUE
    return _clamp_int16(int(steer_angle_deg * 100.0))


__all__ = [
    'round_half_away_from_zero',
    'encode_distance_mm',
    'encode_steer_angle',
]
