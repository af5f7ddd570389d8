"""
田块边界多边形

提供点包含测试、作业段跨界分类和面积计算。

空间索引:
=========
边界可能有数千个点，作业段分类每周期对每个段执行一次。构造时建立
均匀网格边索引 (EdgeGridIndex)，每条边登记到其包围盒覆盖的所有网格，
查询只检查附近网格内的边。

不可变:
=======
BoundaryPolygon 构造后不可修改。修改点集通过 with_points / with_point
返回新实例，包围盒和边索引随新实例一起重建，不存在索引过期的问题。

作业段分类:
===========
作业段是以 center 为中心、垂直于 heading、半宽为 half_width 的线段。
把候选边变换到作业段坐标系 (x 沿作业段向右，y 沿行驶方向)，求各边与
y=0 的交点，从左端点的包含测试出发，逐个交点翻转内外状态，得到段内
位于边界内的长度比例。
"""
from collections import defaultdict
from typing import Dict, Any, List, Tuple
import logging
import math
import numpy as np

from ..core.data_types import SectionBoundaryStatus
from ..core.enums import BoundaryClass
from ..core.constants import EPSILON_SMALL, HALF_PI, SQUARE_METERS_PER_HECTARE, SQUARE_METERS_PER_ACRE
from ..core.geometry_math import signed_area, with_headings
from ..core.validators import ensure_point_array
from ..config.default_config import DEFAULT_CONFIG
from ..config.validation import get_config_value

logger = logging.getLogger(__name__)


class EdgeGridIndex:
    """
    均匀网格边索引

    Args:
        xy: (N, 2) 闭合环顶点，第 i 条边为 i → (i + 1) % N
        cell_size: 网格单元边长 (米)
    """

    def __init__(self, xy: np.ndarray, cell_size: float = 50.0):
        self.cell_size = float(cell_size)
        self._cells: Dict[Tuple[int, int], List[int]] = defaultdict(list)
        self.edge_count = len(xy) if len(xy) >= 2 else 0

        if self.edge_count == 0:
            return

        start = xy
        end = np.roll(xy, -1, axis=0)
        lo = np.floor(np.minimum(start, end) / self.cell_size).astype(int)
        hi = np.floor(np.maximum(start, end) / self.cell_size).astype(int)

        for i in range(self.edge_count):
            for cx in range(lo[i, 0], hi[i, 0] + 1):
                for cy in range(lo[i, 1], hi[i, 1] + 1):
                    self._cells[(cx, cy)].append(i)

    def query(self, e: float, n: float, radius: float) -> np.ndarray:
        """返回包围盒 [e ± radius, n ± radius] 覆盖网格内的边索引 (去重、升序)"""
        cx0 = int(math.floor((e - radius) / self.cell_size))
        cx1 = int(math.floor((e + radius) / self.cell_size))
        cy0 = int(math.floor((n - radius) / self.cell_size))
        cy1 = int(math.floor((n + radius) / self.cell_size))

        found = set()
        for cx in range(cx0, cx1 + 1):
            for cy in range(cy0, cy1 + 1):
                edges = self._cells.get((cx, cy))
                if edges:
                    found.update(edges)
        return np.array(sorted(found), dtype=int)

    @property
    def cell_count(self) -> int:
        return len(self._cells)


class BoundaryPolygon:
    """
    田块边界 (闭合环)

    Args:
        points: (N, 2) 或 (N, 3) 顶点，首尾不重复
        drive_through: 是否允许驶过该边界 (内边界/障碍物标志)
        config: 完整配置字典

    Raises:
        PathValidationError: 点数组形状错误或包含非有限值
    """

    def __init__(self, points, drive_through: bool = False, config: Dict[str, Any] = None):
        self._config = config if config is not None else DEFAULT_CONFIG
        boundary = get_config_value(self._config, 'geometry.boundary', {}, DEFAULT_CONFIG)
        defaults = DEFAULT_CONFIG['geometry']['boundary']
        self.grid_cell_size = boundary.get('grid_cell_size', defaults['grid_cell_size'])
        self.section_margin = boundary.get('section_margin', defaults['section_margin'])
        self.fully_inside_ratio = boundary.get('fully_inside_ratio', defaults['fully_inside_ratio'])
        self.fully_outside_ratio = boundary.get('fully_outside_ratio', defaults['fully_outside_ratio'])

        arr = ensure_point_array(points, name='boundary')
        self._points = with_headings(arr[:, :2], closed=True)
        self._points.flags.writeable = False
        self.drive_through = bool(drive_through)

        xy = self.xy
        if len(xy) > 0:
            self._bbox = (float(xy[:, 0].min()), float(xy[:, 1].min()),
                          float(xy[:, 0].max()), float(xy[:, 1].max()))
        else:
            self._bbox = (0.0, 0.0, 0.0, 0.0)
        self._index = EdgeGridIndex(xy, self.grid_cell_size)
        logger.debug(f"boundary built: {len(xy)} points, {self._index.cell_count} grid cells")

    # =========================================================================
    # 构造新实例
    # =========================================================================

    def with_points(self, points) -> 'BoundaryPolygon':
        """以新点集构造边界，保留标志和配置"""
        return BoundaryPolygon(points, self.drive_through, self._config)

    def with_point(self, e: float, n: float) -> 'BoundaryPolygon':
        """追加一个顶点 (边界录制)"""
        xy = np.vstack([self.xy, [[e, n]]])
        return BoundaryPolygon(xy, self.drive_through, self._config)

    def with_drive_through(self, drive_through: bool) -> 'BoundaryPolygon':
        return BoundaryPolygon(self.xy, drive_through, self._config)

    # =========================================================================
    # 属性
    # =========================================================================

    @property
    def points(self) -> np.ndarray:
        """(N, 3) 顶点，第三列为闭合环航向"""
        return self._points

    @property
    def xy(self) -> np.ndarray:
        return self._points[:, :2]

    @property
    def bbox(self) -> Tuple[float, float, float, float]:
        """(min_e, min_n, max_e, max_n)"""
        return self._bbox

    @property
    def index(self) -> EdgeGridIndex:
        return self._index

    def __len__(self) -> int:
        return len(self._points)

    def __repr__(self) -> str:
        return f'BoundaryPolygon(points={len(self)}, area={self.area:.1f})'

    # =========================================================================
    # 面积
    # =========================================================================

    @property
    def signed_area(self) -> float:
        """有符号面积，逆时针为正"""
        return signed_area(self.xy)

    @property
    def area(self) -> float:
        return abs(self.signed_area)

    @property
    def area_hectares(self) -> float:
        return self.area / SQUARE_METERS_PER_HECTARE

    @property
    def area_acres(self) -> float:
        return self.area / SQUARE_METERS_PER_ACRE

    @property
    def is_clockwise(self) -> bool:
        return self.signed_area < 0.0

    # =========================================================================
    # 包含测试
    # =========================================================================

    def _outside_bbox(self, e: float, n: float, margin: float = 0.0) -> bool:
        min_e, min_n, max_e, max_n = self._bbox
        return (e + margin < min_e or e - margin > max_e
                or n + margin < min_n or n - margin > max_n)

    def point_inside(self, e: float, n: float) -> bool:
        """
        射线法判断点是否在边界内

        向 +E 方向发射射线，统计与各边的交点奇偶性。
        """
        if len(self) < 3 or self._outside_bbox(e, n):
            return False

        xy = self.xy
        ei, ni = xy[:, 0], xy[:, 1]
        ej, nj = np.roll(ei, 1), np.roll(ni, 1)

        straddle = (ni > n) != (nj > n)
        dn = np.where(straddle, nj - ni, 1.0)
        cross_e = (ej - ei) * (n - ni) / dn + ei
        hits = np.count_nonzero(straddle & (e < cross_e))
        return bool(hits % 2 == 1)

    def points_inside(self, points) -> np.ndarray:
        """批量包含测试，返回布尔数组"""
        arr = ensure_point_array(points, name='points')
        return np.array([self.point_inside(float(p[0]), float(p[1])) for p in arr], dtype=bool)

    # =========================================================================
    # 作业段分类
    # =========================================================================

    def segment_crossing_status(self, center_e: float, center_n: float, heading: float,
                                half_width: float) -> SectionBoundaryStatus:
        """
        作业段相对边界的分类

        唯一的快速路径是包围盒外剔除 (完全在外)。收缩包围盒内不直接判为完全在内:
        凹边界的缺口也在包围盒内，这种情况一律走边索引和交点遍历。

        Args:
            center_e, center_n: 作业段中心
            heading: 行驶航向 (弧度)，作业段垂直于该方向
            half_width: 作业段半宽 (米)

        Returns:
            SectionBoundaryStatus
        """
        if len(self) < 3:
            return SectionBoundaryStatus(BoundaryClass.FULLY_INSIDE, 1.0)

        reach = half_width + self.section_margin
        if self._outside_bbox(center_e, center_n, reach):
            return SectionBoundaryStatus(BoundaryClass.FULLY_OUTSIDE, 0.0)

        edges = self._index.query(center_e, center_n, half_width + self.grid_cell_size)
        if len(edges) == 0 or half_width <= 0.0:
            # 附近没有边: 整段与中心点同侧
            if self.point_inside(center_e, center_n):
                return SectionBoundaryStatus(BoundaryClass.FULLY_INSIDE, 1.0)
            return SectionBoundaryStatus(BoundaryClass.FULLY_OUTSIDE, 0.0)

        crossings = self._section_crossings(edges, center_e, center_n, heading, half_width)

        # 从左端点出发逐个交点翻转
        perp = heading + HALF_PI
        left_e = center_e - math.sin(perp) * half_width
        left_n = center_n - math.cos(perp) * half_width
        inside = self.point_inside(left_e, left_n)

        pos = -half_width
        inside_length = 0.0
        for x in crossings:
            if inside:
                inside_length += x - pos
            inside = not inside
            pos = x
        if inside:
            inside_length += half_width - pos

        fraction = float(np.clip(inside_length / (2.0 * half_width), 0.0, 1.0))
        crosses = len(crossings) > 0

        if fraction > self.fully_inside_ratio:
            classification = BoundaryClass.FULLY_INSIDE
        elif fraction < self.fully_outside_ratio:
            classification = BoundaryClass.FULLY_OUTSIDE
        else:
            classification = BoundaryClass.CROSSING
        return SectionBoundaryStatus(classification, fraction, crosses)

    def _section_crossings(self, edges: np.ndarray, center_e: float, center_n: float,
                           heading: float, half_width: float) -> np.ndarray:
        """候选边与作业段 (局部 y=0, |x| < half_width) 的交点，升序"""
        xy = self.xy
        count = len(xy)
        p1 = xy[edges] - (center_e, center_n)
        p2 = xy[(edges + 1) % count] - (center_e, center_n)

        cos_h, sin_h = math.cos(heading), math.sin(heading)
        x1 = p1[:, 0] * cos_h - p1[:, 1] * sin_h
        y1 = p1[:, 0] * sin_h + p1[:, 1] * cos_h
        x2 = p2[:, 0] * cos_h - p2[:, 1] * sin_h
        y2 = p2[:, 0] * sin_h + p2[:, 1] * cos_h

        dy = y2 - y1
        valid = (np.abs(dy) >= EPSILON_SMALL) & ((y1 > 0.0) != (y2 > 0.0))
        if not np.any(valid):
            return np.zeros(0)

        t = -y1[valid] / dy[valid]
        x = x1[valid] + t * (x2[valid] - x1[valid])
        x = x[(x > -half_width) & (x < half_width)]
        return np.sort(x)


__all__ = ['EdgeGridIndex', 'BoundaryPolygon']
