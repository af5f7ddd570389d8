"""
间距规整

把偏移得到的转弯线/地头线整理成点距大致均匀的路径:

1. 围栏剔除: 距任一围栏点过近的点被移除 (平方距离 < fence_distance² × 0.99)
2. 插点: 相邻点平方距离 > spacing² × 1.8 时插入中点并回退一步重新检查
3. 删点: 相邻点平方距离 < spacing² 时删除后一个点并回退一步;
   删除会让间距超过插点阈值时保留该点，输出最大点距不超过 spacing × √1.8
4. 航向: 内部点中心差分。闭合输出时首点重复一次，分别携带前向航向和
   跨首尾的平均航向，末点使用后向航向

围栏剔除用 scipy cKDTree 查询最近围栏点，与逐对扫描结果一致。
"""
from typing import Dict, Any
import logging
import numpy as np
from scipy.spatial import cKDTree

from ..core.constants import TWO_PI
from ..core.geometry_math import compute_headings
from ..core.validators import ensure_point_array, ensure_positive
from ..config.default_config import DEFAULT_CONFIG
from ..config.validation import get_config_value

logger = logging.getLogger(__name__)


def _heading(de, dn):
    h = np.arctan2(de, dn)
    return np.where(h < 0.0, h + TWO_PI, h)


def closed_line_headings(xy: np.ndarray) -> np.ndarray:
    """
    闭合转弯线的航向

    Returns:
        (N + 1, 3) 数组: 首点重复两次 (前向航向、跨首尾平均航向)，
        内部点中心差分，末点后向差分
    """
    count = len(xy)
    if count < 2:
        out = np.zeros((count, 3))
        out[:, :2] = xy[:, :2]
        return out

    e = xy[:, 0]
    n = xy[:, 1]
    out = np.empty((count + 1, 3))
    out[0, :2] = xy[0, :2]
    out[0, 2] = _heading(e[1] - e[0], n[1] - n[0])
    out[1, :2] = xy[0, :2]
    out[1, 2] = _heading(e[1] - e[-1], n[1] - n[-1])
    if count > 2:
        out[2:count, :2] = xy[1:-1, :2]
        out[2:count, 2] = _heading(e[2:] - e[:-2], n[2:] - n[:-2])
    out[count, :2] = xy[-1, :2]
    out[count, 2] = _heading(e[-1] - e[-2], n[-1] - n[-2])
    return out


class SpacingNormalizer:
    """
    转弯线间距规整

    Args:
        config: 完整配置字典
    """

    def __init__(self, config: Dict[str, Any] = None):
        config = config if config is not None else DEFAULT_CONFIG
        spacing = get_config_value(config, 'geometry.spacing', {}, DEFAULT_CONFIG)
        defaults = DEFAULT_CONFIG['geometry']['spacing']
        self.fence_factor = spacing.get('fence_factor', defaults['fence_factor'])
        self.insert_factor = spacing.get('insert_factor', defaults['insert_factor'])

    def normalize(self, points, spacing: float, fence=None, fence_distance: float = 0.0,
                  closed: bool = True) -> np.ndarray:
        """
        规整点距

        Args:
            points: 转弯线点
            spacing: 目标点距 (米)
            fence: 围栏点，None 表示不做围栏剔除
            fence_distance: 转弯线到围栏的最小距离 (通常为地头总宽)
            closed: 是否闭合，决定插点时是否检查首尾回绕以及航向格式

        Returns:
            (M, 3) 数组，闭合时首点重复一次

        Raises:
            PathValidationError: 输入形状错误或 spacing <= 0
        """
        xy = ensure_point_array(points, name='turn_line')[:, :2]
        ensure_positive(spacing, 'spacing')
        if len(xy) == 0:
            return np.zeros((0, 3))

        if fence is not None and fence_distance > 0.0:
            xy = self.remove_near_fence(xy, fence, fence_distance)

        spacing_sq = spacing * spacing
        pts = [tuple(p) for p in xy]
        pts = self._insert_midpoints(pts, spacing_sq * self.insert_factor, closed)
        pts = self._remove_close(pts, spacing_sq, spacing_sq * self.insert_factor, closed)

        xy = np.array(pts, dtype=np.float64).reshape(-1, 2)
        logger.debug(f"spacing normalized to {len(xy)} points (spacing {spacing:.2f} m)")

        if closed:
            return closed_line_headings(xy)
        out = np.empty((len(xy), 3))
        out[:, :2] = xy
        out[:, 2] = compute_headings(xy, closed=False)
        return out

    def remove_near_fence(self, xy: np.ndarray, fence, fence_distance: float) -> np.ndarray:
        """移除距任一围栏点平方距离小于 fence_distance² × fence_factor 的点"""
        fence_xy = ensure_point_array(fence, name='fence')[:, :2]
        if len(fence_xy) == 0 or len(xy) == 0:
            return xy
        dist, _ = cKDTree(fence_xy).query(xy, k=1)
        keep = dist * dist >= fence_distance * fence_distance * self.fence_factor
        removed = int(np.count_nonzero(~keep))
        if removed:
            logger.debug(f"removed {removed} points near fence")
        return xy[keep]

    @staticmethod
    def _insert_midpoints(pts, limit_sq: float, closed: bool):
        i = 0
        while i < len(pts):
            j = i + 1
            if j == len(pts):
                if not closed or len(pts) < 2:
                    break
                j = 0
            (ae, an), (be, bn) = pts[i], pts[j]
            if (ae - be) ** 2 + (an - bn) ** 2 > limit_sq:
                pts.insert(i + 1, ((ae + be) * 0.5, (an + bn) * 0.5))
                continue
            i += 1
        return pts

    @staticmethod
    def _remove_close(pts, min_sq: float, limit_sq: float, closed: bool):
        # 删除后与再下一个点的间距不得超过插点阈值
        i = 0
        while i < len(pts) - 1:
            (ae, an), (be, bn) = pts[i], pts[i + 1]
            if (ae - be) ** 2 + (an - bn) ** 2 < min_sq:
                k = i + 2
                if k < len(pts) or closed:
                    ce, cn = pts[k % len(pts)]
                    gap_sq = (ae - ce) ** 2 + (an - cn) ** 2
                else:
                    gap_sq = 0.0
                if gap_sq <= limit_sq:
                    del pts[i + 1]
                    continue
            i += 1
        return pts


__all__ = ['SpacingNormalizer', 'closed_line_headings']
