"""
平面几何基础函数

坐标约定:
- 点为 (easting, northing) 或 (easting, northing, heading)
- 航向从正北顺时针测量: heading = atan2(dE, dN)，范围 [0, 2π)
- 左垂线 (-dN, dE)，逆时针多边形的左侧即内侧

这些函数不依赖其他几何模块，供 tracker 和 geometry 共享。
"""
from typing import Tuple
import numpy as np

from .constants import EPSILON_SMALL, TWO_PI


def distance_sq(e1: float, n1: float, e2: float, n2: float) -> float:
    """两点距离平方"""
    de = e1 - e2
    dn = n1 - n2
    return de * de + dn * dn


def segment_heading(e1: float, n1: float, e2: float, n2: float) -> float:
    """从 (e1, n1) 指向 (e2, n2) 的航向，范围 [0, 2π)"""
    heading = float(np.arctan2(e2 - e1, n2 - n1))
    if heading < 0.0:
        heading += TWO_PI
    return heading


def signed_area(xy: np.ndarray) -> float:
    """
    鞋带公式计算有符号面积

    Returns:
        正值表示逆时针，负值表示顺时针
    """
    if len(xy) < 3:
        return 0.0
    e = xy[:, 0]
    n = xy[:, 1]
    return float(0.5 * np.sum(e * np.roll(n, -1) - np.roll(e, -1) * n))


def compute_headings(xy: np.ndarray, closed: bool = False) -> np.ndarray:
    """
    由相邻点差分计算每点航向

    内部点使用中心差分 (next - prev)。开放路径的首尾点使用单侧差分，
    闭合路径首尾回绕。

    Args:
        xy: (N, 2) 或 (N, 3) 数组，只使用前两列
        closed: 是否闭合

    Returns:
        (N,) 航向数组，范围 [0, 2π)
    """
    n = len(xy)
    if n == 0:
        return np.zeros(0)
    if n == 1:
        return np.zeros(1)

    e = xy[:, 0]
    north = xy[:, 1]
    if closed and n > 2:
        de = np.roll(e, -1) - np.roll(e, 1)
        dn = np.roll(north, -1) - np.roll(north, 1)
    else:
        de = np.empty(n)
        dn = np.empty(n)
        de[1:-1] = e[2:] - e[:-2]
        dn[1:-1] = north[2:] - north[:-2]
        de[0] = e[1] - e[0]
        dn[0] = north[1] - north[0]
        de[-1] = e[-1] - e[-2]
        dn[-1] = north[-1] - north[-2]

    headings = np.arctan2(de, dn)
    return np.where(headings < 0.0, headings + TWO_PI, headings)


def with_headings(xy: np.ndarray, closed: bool = False) -> np.ndarray:
    """返回 (N, 3) 数组，第三列为重新计算的航向"""
    xy = np.asarray(xy, dtype=np.float64)
    out = np.empty((len(xy), 3))
    out[:, :2] = xy[:, :2]
    out[:, 2] = compute_headings(xy, closed)
    return out


def cross_track_error(ae: float, an: float, be: float, bn: float,
                      e: float, n: float) -> Tuple[float, float]:
    """
    点到直线 AB 的有符号垂直距离

    正值表示点在 A→B 方向的右侧。

    Returns:
        (xte, 线段长度平方)，长度平方小于 EPSILON_SMALL 时 xte 为 0
    """
    dx = be - ae
    dz = bn - an
    len_sq = dx * dx + dz * dz
    if len_sq < EPSILON_SMALL:
        return 0.0, len_sq
    xte = ((dz * e - dx * n) + be * an - bn * ae) / np.sqrt(len_sq)
    return float(xte), len_sq


def project_unclamped(ae: float, an: float, be: float, bn: float,
                      e: float, n: float) -> Tuple[float, float, float]:
    """
    点在直线 AB 上的投影，参数 U 不限制在 [0, 1]

    Returns:
        (U, 投影点 easting, 投影点 northing)
    """
    dx = be - ae
    dz = bn - an
    len_sq = dx * dx + dz * dz
    if len_sq < EPSILON_SMALL:
        return 0.0, ae, an
    u = ((e - ae) * dx + (n - an) * dz) / len_sq
    return float(u), ae + u * dx, an + u * dz


def offset_perpendicular(e: float, n: float, heading: float, distance: float) -> Tuple[float, float]:
    """沿 heading + 90° 方向偏移 distance，正值向右"""
    perp = heading + 0.5 * np.pi
    return e + np.sin(perp) * distance, n + np.cos(perp) * distance


__all__ = [
    'distance_sq',
    'segment_heading',
    'signed_area',
    'compute_headings',
    'with_headings',
    'cross_track_error',
    'project_unclamped',
    'offset_perpendicular',
]
