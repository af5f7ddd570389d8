"""
测试数据生成

所有坐标为本地平面 (easting, northing)，航向从正北顺时针。
"""
import numpy as np

from autosteer_core.core.data_types import VehiclePose


def square_boundary(size: float = 100.0, ccw: bool = True) -> np.ndarray:
    """左下角在原点的正方形边界"""
    pts = np.array([[0.0, 0.0], [size, 0.0], [size, size], [0.0, size]])
    return pts if ccw else pts[::-1].copy()


def circle_points(radius: float, count: int = 360, center=(0.0, 0.0), ccw: bool = True) -> np.ndarray:
    """圆周点，ccw=True 时逆时针排列"""
    theta = np.linspace(0.0, 2.0 * np.pi, count, endpoint=False)
    if not ccw:
        theta = -theta
    return np.column_stack([center[0] + radius * np.cos(theta),
                            center[1] + radius * np.sin(theta)])


def north_curve(length: float = 100.0, spacing: float = 1.0, easting: float = 0.0) -> np.ndarray:
    """沿 +N 方向的直曲线 (点数 > 2 的开放路径)"""
    n = np.arange(0.0, length + spacing * 0.5, spacing)
    return np.column_stack([np.full_like(n, easting), n])


def u_turn_points(radius: float = 5.0, leg: float = 10.0, spacing: float = 0.5) -> np.ndarray:
    """
    掉头路径: 沿 +N 直行 leg，半圆向右转到 easting = 2 * radius，再沿 -N 直行 leg
    """
    up = np.column_stack([np.zeros(int(leg / spacing)), np.arange(0.0, leg, spacing)])
    steps = int(np.pi * radius / spacing)
    theta = np.linspace(np.pi, 0.0, steps, endpoint=False)
    arc = np.column_stack([radius + radius * np.cos(theta), leg + radius * np.sin(theta)])
    down_n = np.arange(leg, -spacing * 0.5, -spacing)
    down = np.column_stack([np.full_like(down_n, 2.0 * radius), down_n])
    return np.vstack([up, arc, down])


def make_pose(e: float, n: float, heading: float = 0.0, speed: float = 8.0, roll=None) -> VehiclePose:
    return VehiclePose(easting=e, northing=n, heading=heading, speed=speed, roll=roll)
