"""
最近线段搜索

给定车辆位置和路径，返回最近包围线段的升序索引对 (A, B)。

搜索模式:
=========

1. 全局搜索 (find_global=True)
   - 每 coarse_stride 个点粗扫描一次得到近似最近点
   - 在其 ±refine_window 窗口内精扫描，取两个真实最近点并升序排列

2. 局部搜索 (find_global=False)
   - 从上一周期索引出发，沿行驶方向模运算步进，跟踪最小距离平方
   - 累积行驶距离超过前瞻预算后，继续步进直到距离开始增大 (局部最小)
   - 再做与全局搜索相同的窗口精扫描
   - 每周期开销受前瞻窗口约束，不随路径长度增长

3. 全扫描 (等高线、掉头路径)
   - 在全部点中取两个最近点

4. 闭合环
   - A 为最近点，B 为下一个点 (回绕)
   - 投影不在 AB 内时退回前一段

退化情况 (空路径、点数不足、线段长度为零) 通过 SegmentLocation.status 返回，
不使用哨兵值。
"""
from dataclasses import dataclass
from typing import Dict, Any, Tuple
import numpy as np
import logging

from ..core.data_types import GuidancePath
from ..core.enums import GuidanceStatus, PathKind
from ..core.constants import EPSILON_SMALL
from ..config.validation import get_config_value
from ..config.default_config import DEFAULT_CONFIG

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SegmentLocation:
    """
    线段搜索结果

    Attributes:
        status: VALID / LOST_LOCK / SEGMENT_DEGENERATE
        index_a, index_b: 线段端点索引，开放路径中 A < B
        nearest_index: 粗搜索或局部搜索得到的最近点，作为下一周期的起点
        distance_sq: 到最近端点的距离平方
    """
    status: GuidanceStatus
    index_a: int = -1
    index_b: int = -1
    nearest_index: int = -1
    distance_sq: float = float('inf')

    @property
    def is_valid(self) -> bool:
        return self.status == GuidanceStatus.VALID


def _lost(reason: str) -> SegmentLocation:
    logger.debug(f"segment search lost: {reason}")
    return SegmentLocation(GuidanceStatus.LOST_LOCK)


def _distances_sq(xy: np.ndarray, e: float, n: float) -> np.ndarray:
    de = xy[:, 0] - e
    dn = xy[:, 1] - n
    return de * de + dn * dn


def _in_segment(xy: np.ndarray, a: int, b: int, e: float, n: float) -> bool:
    """点的投影是否落在线段 AB 内"""
    dx = xy[b, 0] - xy[a, 0]
    dz = xy[b, 1] - xy[a, 1]
    len_sq = dx * dx + dz * dz
    if len_sq < EPSILON_SMALL:
        return False
    t = ((e - xy[a, 0]) * dx + (n - xy[a, 1]) * dz) / len_sq
    return 0.0 <= t <= 1.0


class SegmentLocator:
    """最近线段搜索器，无状态，可在多个控制器间共享"""

    def __init__(self, coarse_stride: int = 10, refine_window: int = 8):
        self.coarse_stride = max(1, int(coarse_stride))
        self.refine_window = max(1, int(refine_window))

    @classmethod
    def from_config(cls, config: Dict[str, Any],
                    window_key: str = 'refine_window') -> 'SegmentLocator':
        locator = get_config_value(config, 'guidance.locator', {}, DEFAULT_CONFIG)
        defaults = DEFAULT_CONFIG['guidance']['locator']
        return cls(coarse_stride=locator.get('coarse_stride', defaults['coarse_stride']),
                   refine_window=locator.get(window_key, defaults[window_key]))

    # =========================================================================
    # 基础搜索
    # =========================================================================

    def nearest_global(self, xy: np.ndarray, e: float, n: float) -> int:
        """按粗步长扫描，返回近似最近点索引"""
        d2 = _distances_sq(xy[::self.coarse_stride], e, n)
        return int(np.argmin(d2)) * self.coarse_stride

    def nearest_local(self, xy: np.ndarray, e: float, n: float, start: int,
                      budget: float, forward: bool) -> int:
        """
        从 start 沿 forward 方向步进搜索局部最近点

        Args:
            start: 起始索引 (上一周期结果)
            budget: 前瞻距离预算 (米)
            forward: True 表示索引递增方向
        """
        count = len(xy)
        start %= count
        direction = 1 if forward else -1
        min_dist = (xy[start, 0] - e) ** 2 + (xy[start, 1] - n) ** 2
        min_index = start

        prev_e, prev_n = xy[start, 0], xy[start, 1]
        dist_so_far = 0.0
        offset = 1
        while offset < count:
            idx = (start + offset * direction) % count
            pe, pn = xy[idx, 0], xy[idx, 1]
            dist = (pe - e) ** 2 + (pn - n) ** 2
            if dist < min_dist:
                min_dist = dist
                min_index = idx
            dist_so_far += np.hypot(pe - prev_e, pn - prev_n)
            prev_e, prev_n = pe, pn
            offset += 1
            if dist_so_far > budget:
                break

        # 继续直到距离开始增大
        while offset < count:
            idx = (start + offset * direction) % count
            dist = (xy[idx, 0] - e) ** 2 + (xy[idx, 1] - n) ** 2
            if dist >= min_dist:
                break
            min_dist = dist
            min_index = idx
            offset += 1

        return int(min_index)

    def refine_pair(self, xy: np.ndarray, e: float, n: float, center: int) -> Tuple[int, int, float]:
        """
        在 center ±refine_window 窗口内取两个最近点

        Returns:
            (A, B, A/B 中较近点的距离平方)，A < B
        """
        lo = max(0, center - self.refine_window)
        hi = min(len(xy), center + self.refine_window + 1)
        d2 = _distances_sq(xy[lo:hi], e, n)
        if len(d2) < 2:
            return -1, -1, float('inf')
        first, second = np.argpartition(d2, 1)[:2]
        if d2[second] < d2[first]:
            first, second = second, first
        a, b = lo + int(first), lo + int(second)
        if a > b:
            a, b = b, a
        return a, b, float(d2[first])

    def full_scan_pair(self, xy: np.ndarray, e: float, n: float) -> Tuple[int, int, float]:
        """在全部点中取两个最近点，升序返回"""
        if len(xy) < 2:
            return -1, -1, float('inf')
        d2 = _distances_sq(xy, e, n)
        first, second = np.argpartition(d2, 1)[:2]
        if d2[second] < d2[first]:
            first, second = second, first
        nearest = float(d2[first])
        a, b = int(first), int(second)
        if a > b:
            a, b = b, a
        return a, b, nearest

    # =========================================================================
    # 组合搜索
    # =========================================================================

    def locate(self, path: GuidancePath, e: float, n: float, current_index: int = 0,
               find_global: bool = True, lookahead: float = 0.0,
               search_forward: bool = True) -> SegmentLocation:
        """
        按路径类型搜索最近线段

        Args:
            path: 导航路径
            e, n: 参考点坐标 (枢轴点或转向轴)
            current_index: 上一周期的局部搜索索引
            find_global: 是否全局搜索
            lookahead: 局部搜索的前瞻预算 (米)
            search_forward: 局部搜索方向，True 为索引递增

        Returns:
            SegmentLocation
        """
        count = len(path)
        if count < 2:
            return _lost(f'path has {count} points')

        xy = path.xy
        if path.kind == PathKind.LINE:
            return self._checked(xy, 0, 1, 0, float(np.min(_distances_sq(xy, e, n))))

        if path.kind == PathKind.LOOP:
            return self.locate_closed(path, e, n)

        if path.contour:
            a, b, d2 = self.full_scan_pair(xy, e, n)
            return self._checked(xy, a, b, a, d2)

        if find_global or not 0 <= current_index < count:
            center = self.nearest_global(xy, e, n)
        else:
            center = self.nearest_local(xy, e, n, current_index, lookahead, search_forward)

        a, b, d2 = self.refine_pair(xy, e, n, center)
        return self._checked(xy, a, b, center, d2)

    def locate_closed(self, path: GuidancePath, e: float, n: float) -> SegmentLocation:
        """
        闭合环搜索: A 为最近点，B 为回绕后的下一个点

        投影不在 AB 内时退回到前一段; 两段都不包含投影时 (凸角外侧) 失锁。
        """
        xy = path.xy
        count = len(xy)
        if count < 3:
            return _lost(f'closed path has {count} points')

        d2 = _distances_sq(xy, e, n)
        a = int(np.argmin(d2))
        b = (a + 1) % count
        if not _in_segment(xy, a, b, e, n):
            prev_a = (a - 1) % count
            if not _in_segment(xy, prev_a, a, e, n):
                return _lost(f'projection outside segments around vertex {a}')
            a, b = prev_a, a
        return self._checked(xy, a, b, a, float(d2[a]))

    @staticmethod
    def _checked(xy: np.ndarray, a: int, b: int, nearest: int, d2: float) -> SegmentLocation:
        if a < 0 or b < 0 or a >= len(xy) or b >= len(xy):
            return _lost(f'index out of range A={a} B={b}')
        dx = xy[b, 0] - xy[a, 0]
        dz = xy[b, 1] - xy[a, 1]
        if dx * dx + dz * dz < EPSILON_SMALL:
            return SegmentLocation(GuidanceStatus.SEGMENT_DEGENERATE, a, b, nearest, d2)
        return SegmentLocation(GuidanceStatus.VALID, a, b, nearest, d2)


__all__ = ['SegmentLocation', 'SegmentLocator']
