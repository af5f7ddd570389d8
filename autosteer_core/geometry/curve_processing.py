"""
录制曲线预处理

录制的曲线点距随车速变化，使用前依次:
1. ensure_minimum_spacing: 去掉过密的点
2. interpolate: 在过长的线段中插点
3. calculate_headings: 前向差分航向

preprocess() 按上述顺序组合。
"""
import numpy as np

from ..core.constants import EPSILON_SMALL, TWO_PI
from ..core.validators import ensure_point_array, ensure_positive


def _to_points(points) -> np.ndarray:
    arr = ensure_point_array(points, name='curve')
    out = np.zeros((len(arr), 3))
    out[:, :arr.shape[1]] = arr
    return out


def ensure_minimum_spacing(points, min_spacing: float) -> np.ndarray:
    """
    保留与上一个保留点距离不小于 min_spacing 的点，末点始终保留

    Returns:
        (M, 3) 数组
    """
    pts = _to_points(points)
    if len(pts) < 2:
        return pts

    min_sq = min_spacing * min_spacing
    keep = [0]
    last = pts[0]
    for i in range(1, len(pts)):
        de = pts[i, 0] - last[0]
        dn = pts[i, 1] - last[1]
        if de * de + dn * dn >= min_sq:
            keep.append(i)
            last = pts[i]

    tail = pts[-1]
    kept_last = pts[keep[-1]]
    if (tail[0] - kept_last[0]) ** 2 + (tail[1] - kept_last[1]) ** 2 > EPSILON_SMALL:
        keep.append(len(pts) - 1)
    return pts[keep]


def interpolate(points, spacing: float) -> np.ndarray:
    """
    在长于 spacing 的线段中均匀插点，插入点航向为 0 (由 calculate_headings 重算)

    Raises:
        PathValidationError: spacing <= 0
    """
    ensure_positive(spacing, 'spacing')
    pts = _to_points(points)
    if len(pts) < 2:
        return pts

    result = []
    for a, b in zip(pts[:-1], pts[1:]):
        result.append(a)
        de = b[0] - a[0]
        dn = b[1] - a[1]
        steps = int(np.hypot(de, dn) / spacing)
        for j in range(1, steps):
            t = j / steps
            result.append(np.array([a[0] + de * t, a[1] + dn * t, 0.0]))
    result.append(pts[-1])
    return np.array(result)


def calculate_headings(points) -> np.ndarray:
    """前向差分航向，末点沿用倒数第二点的航向"""
    pts = _to_points(points)
    if len(pts) < 2:
        return pts

    de = np.diff(pts[:, 0])
    dn = np.diff(pts[:, 1])
    headings = np.arctan2(de, dn)
    headings = np.where(headings < 0.0, headings + TWO_PI, headings)
    pts[:-1, 2] = headings
    pts[-1, 2] = headings[-1]
    return pts


def average_heading(points) -> float:
    """航向的圆周平均，范围 [0, 2π)，空输入返回 0"""
    pts = _to_points(points)
    if len(pts) == 0:
        return 0.0
    avg = float(np.arctan2(np.mean(np.sin(pts[:, 2])), np.mean(np.cos(pts[:, 2]))))
    if avg < 0.0:
        avg += TWO_PI
    return avg


def preprocess(points, min_spacing: float, interpolation_spacing: float) -> np.ndarray:
    """去密、插点、重算航向"""
    result = ensure_minimum_spacing(points, min_spacing)
    result = interpolate(result, interpolation_spacing)
    return calculate_headings(result)


__all__ = [
    'ensure_minimum_spacing',
    'interpolate',
    'calculate_headings',
    'average_heading',
    'preprocess',
]
