"""
导航线平移 (Nudge)

作业中把 AB 线或曲线沿法向平移一小段距离，正值向右。

曲线平移步骤:
1. 每个点沿 heading + π/2 移动 distance
2. 移动后距任一原始点平方距离 < distance² - 0.01 的点被丢弃 (内弯处互相挤压)
3. 与上一个保留点距离不大于 min_spacing 的点被丢弃
4. 用 Catmull-Rom 样条按 smooth_spacing 加密
5. 中心差分重算航向

保留点数不足 min_points 时平移无意义，原样返回输入。
"""
from typing import Dict, Any, Tuple
import logging
import numpy as np
from scipy.spatial import cKDTree

from ..core.constants import HALF_PI
from ..core.geometry_math import compute_headings, offset_perpendicular, segment_heading
from ..core.validators import ensure_point_array
from ..config.default_config import DEFAULT_CONFIG
from ..config.validation import get_config_value

logger = logging.getLogger(__name__)


def catmull_rom(t: float, p0: np.ndarray, p1: np.ndarray, p2: np.ndarray, p3: np.ndarray) -> np.ndarray:
    """均匀 Catmull-Rom 样条在 p1 → p2 之间的插值点"""
    tt = t * t
    ttt = tt * t
    q1 = -ttt + 2.0 * tt - t
    q2 = 3.0 * ttt - 5.0 * tt + 2.0
    q3 = -3.0 * ttt + 4.0 * tt + t
    q4 = ttt - tt
    return 0.5 * (p0[:2] * q1 + p1[:2] * q2 + p2[:2] * q3 + p3[:2] * q4)


class TrackNudger:
    """
    导航线平移

    Args:
        config: 完整配置字典
    """

    def __init__(self, config: Dict[str, Any] = None):
        config = config if config is not None else DEFAULT_CONFIG
        nudge = get_config_value(config, 'geometry.nudge', {}, DEFAULT_CONFIG)
        defaults = DEFAULT_CONFIG['geometry']['nudge']
        self.collision_margin = nudge.get('collision_margin', defaults['collision_margin'])
        self.min_spacing = nudge.get('min_spacing', defaults['min_spacing'])
        self.min_points = nudge.get('min_points', defaults['min_points'])
        self.smooth_spacing = nudge.get('smooth_spacing', defaults['smooth_spacing'])

    @staticmethod
    def nudge_line(a: Tuple[float, float], b: Tuple[float, float],
                   distance: float) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        """AB 线两端点沿 A→B 航向的右侧平移 distance"""
        heading = segment_heading(a[0], a[1], b[0], b[1])
        new_a = offset_perpendicular(a[0], a[1], heading, distance)
        new_b = offset_perpendicular(b[0], b[1], heading, distance)
        return ((float(new_a[0]), float(new_a[1])), (float(new_b[0]), float(new_b[1])))

    def nudge_curve(self, points, distance: float) -> np.ndarray:
        """
        平移曲线

        Args:
            points: (N, 3) 曲线点，两列时按开放曲线计算航向
            distance: 平移距离 (米)，正值向右

        Returns:
            (M, 3) 平移后的曲线，点数不足时返回输入的 (N, 3) 副本
        """
        arr = ensure_point_array(points, name='curve')
        if arr.shape[1] == 2:
            arr = np.column_stack([arr, compute_headings(arr, closed=False)])
        if len(arr) < self.min_points or distance == 0.0:
            return arr.copy()

        perp = arr[:, 2] + HALF_PI
        moved = np.column_stack([arr[:, 0] + np.sin(perp) * distance,
                                 arr[:, 1] + np.cos(perp) * distance])

        dist, _ = cKDTree(arr[:, :2]).query(moved, k=1)
        clear = dist * dist >= distance * distance - self.collision_margin

        min_sq = self.min_spacing * self.min_spacing
        kept = []
        for point, ok in zip(moved, clear):
            if not ok:
                continue
            if kept and (point[0] - kept[-1][0]) ** 2 + (point[1] - kept[-1][1]) ** 2 <= min_sq:
                continue
            kept.append(point)

        if len(kept) < self.min_points:
            logger.warning(f"nudge {distance:.2f} m left {len(kept)} points, keeping original curve")
            return arr.copy()

        smoothed = self._smooth(np.array(kept))
        out = np.empty((len(smoothed), 3))
        out[:, :2] = smoothed
        out[:, 2] = compute_headings(smoothed, closed=False)
        return out

    def _smooth(self, pts: np.ndarray) -> np.ndarray:
        """Catmull-Rom 加密，首尾两点原样保留"""
        count = len(pts)
        result = [pts[0]]
        for i in range(count - 3):
            p0, p1, p2, p3 = pts[i], pts[i + 1], pts[i + 2], pts[i + 3]
            result.append(p1)
            gap = float(np.hypot(p2[0] - p1[0], p2[1] - p1[1]))
            if gap > self.smooth_spacing:
                loops = int(gap / self.smooth_spacing + 1)
                for j in range(1, loops):
                    result.append(catmull_rom(j / loops, p0, p1, p2, p3))
        result.append(pts[-2])
        result.append(pts[-1])
        return np.array(result)


__all__ = ['TrackNudger', 'catmull_rom']
