"""
多边形偏移

地头线、内边界外扩和开放线平移。所有输出点都重新计算航向，返回 (N, 3) 数组。

内缩偏移 (inward_offset):
=========================
1. 每个顶点沿相邻两条边左垂线的平均方向移动 distance，
   方向按环绕方向取符号 (逆时针时左侧为内侧)。
   逐点移动而不是按边平移，以保留录制曲线的形状。
2. shapely make_valid + unary_union 清理自相交，保留面积最大的环
3. 超过 20° 的拐角用半径 0.8 × distance 的切线圆弧替换
4. 相邻点间距超过 max_gap 时插值补点

偏移距离超过多边形内切半径时结果塌缩，返回空数组。对称多边形越过内切半径后
环绕方向不变，因此先用 shapely 负缓冲判断是否还有剩余面积，再检查环绕方向翻转。

外扩偏移 (outward_offset) 和开放线偏移 (line_offset) 直接使用 shapely buffer。
"""
from typing import Dict, Any, List, Optional
import logging
import math
import numpy as np

from shapely.geometry import Polygon, LineString, MultiPolygon, GeometryCollection
from shapely.geometry.polygon import orient
from shapely.ops import unary_union
from shapely.validation import make_valid

from ..core.enums import JoinStyle
from ..core.exceptions import GeometryError
from ..core.geometry_math import signed_area, with_headings
from ..core.validators import ensure_point_array
from ..config.default_config import DEFAULT_CONFIG
from ..config.validation import get_config_value

logger = logging.getLogger(__name__)

# shapely buffer 连接方式，SQUARE 没有对应的连接方式，按 mitre 处理
_SHAPELY_JOIN = {
    JoinStyle.ROUND: 'round',
    JoinStyle.MITRE: 'mitre',
    JoinStyle.SQUARE: 'mitre',
    JoinStyle.BEVEL: 'bevel',
}


def _empty() -> np.ndarray:
    return np.zeros((0, 3))


def _as_xy(points, min_points: int, name: str) -> np.ndarray:
    """接受点数组或带 xy 属性的对象 (BoundaryPolygon / GuidancePath)"""
    if hasattr(points, 'xy'):
        points = points.xy
    return ensure_point_array(points, min_points=min_points, name=name)[:, :2]


def _polygon_parts(geom) -> List[Polygon]:
    if isinstance(geom, Polygon):
        return [geom]
    if isinstance(geom, (MultiPolygon, GeometryCollection)):
        parts = []
        for g in geom.geoms:
            parts.extend(_polygon_parts(g))
        return parts
    return []


def _ring_xy(poly: Polygon, ccw: bool) -> np.ndarray:
    """多边形外环坐标，去掉闭合重复点并按指定环绕方向排列"""
    poly = orient(poly, sign=1.0 if ccw else -1.0)
    return np.asarray(poly.exterior.coords)[:-1, :2]


class PolygonOffsetEngine:
    """
    多边形偏移引擎

    Args:
        config: 完整配置字典

    Example:
        >>> engine = PolygonOffsetEngine(config)
        >>> headland = engine.inward_offset(boundary.xy, 12.0)
        >>> passes = engine.multi_pass_offset(boundary.xy, 6.0, passes=3)
    """

    def __init__(self, config: Dict[str, Any] = None):
        config = config if config is not None else DEFAULT_CONFIG
        offset = get_config_value(config, 'geometry.offset', {}, DEFAULT_CONFIG)
        defaults = DEFAULT_CONFIG['geometry']['offset']

        self.min_normal_length = offset.get('min_normal_length', defaults['min_normal_length'])
        self.corner_angle = math.radians(offset.get('corner_angle_deg', defaults['corner_angle_deg']))
        self.corner_radius_factor = offset.get('corner_radius_factor', defaults['corner_radius_factor'])
        self.tangent_edge_fraction = offset.get('tangent_edge_fraction', defaults['tangent_edge_fraction'])
        self.arc_step = math.radians(offset.get('arc_step_deg', defaults['arc_step_deg']))
        self.min_arc_segments = offset.get('min_arc_segments', defaults['min_arc_segments'])
        self.max_gap = offset.get('max_gap', defaults['max_gap'])
        self.line_offset_tolerance = offset.get('line_offset_tolerance', defaults['line_offset_tolerance'])
        self.buffer_resolution = offset.get('buffer_resolution', defaults['buffer_resolution'])

    # =========================================================================
    # 闭合多边形
    # =========================================================================

    def inward_offset(self, points, distance: float,
                      join_style: JoinStyle = JoinStyle.ROUND) -> np.ndarray:
        """
        向内偏移闭合多边形

        Args:
            points: 边界顶点 (N >= 3)
            distance: 偏移距离 (米)，<= 0 时返回原多边形
            join_style: ROUND 时对尖角做圆弧过渡，其余方式保留清理后的尖角

        Returns:
            (M, 3) 偏移环，塌缩时为空数组

        Raises:
            PathValidationError: 点数不足或包含非有限值
        """
        xy = _as_xy(points, 3, 'boundary')
        if distance <= 0.0:
            return with_headings(xy, closed=True)

        area = signed_area(xy)
        ccw = area > 0.0

        source = make_valid(Polygon(xy))
        if source.buffer(-distance).is_empty:
            logger.warning(f"inward offset {distance:.2f} m exceeds the inscribed radius")
            return _empty()

        raw = self._move_vertices(xy, distance, 1.0 if ccw else -1.0)

        # 整体翻转说明偏移距离超过了内切半径
        raw_area = signed_area(raw)
        if raw_area == 0.0 or (raw_area > 0.0) != ccw:
            logger.warning(f"inward offset {distance:.2f} m collapsed the polygon")
            return _empty()

        ring = self._cleanup(raw, source, ccw)
        if ring is None:
            logger.warning(f"inward offset {distance:.2f} m collapsed the polygon")
            return _empty()

        if join_style == JoinStyle.ROUND:
            ring = self._round_corners(ring, distance * self.corner_radius_factor)
        ring = self._fill_gaps(ring)
        return with_headings(ring, closed=True)

    def require_inward_offset(self, points, distance: float,
                              join_style: JoinStyle = JoinStyle.ROUND) -> np.ndarray:
        """
        与 inward_offset 相同，但塌缩时抛出异常

        Raises:
            GeometryError: 偏移后没有剩余区域
        """
        ring = self.inward_offset(points, distance, join_style)
        if len(ring) < 3:
            raise GeometryError(f'内缩 {distance:.2f} 米后多边形塌缩')
        return ring

    def outward_offset(self, points, distance: float,
                       join_style: JoinStyle = JoinStyle.ROUND) -> np.ndarray:
        """
        向外偏移闭合多边形 (内边界/障碍物的地头)

        Returns:
            (M, 3) 偏移环，保持原环绕方向
        """
        xy = _as_xy(points, 3, 'boundary')
        if distance <= 0.0:
            return with_headings(xy, closed=True)

        ccw = signed_area(xy) > 0.0
        source = make_valid(Polygon(xy))
        grown = source.buffer(distance, quad_segs=self.buffer_resolution,
                              join_style=_SHAPELY_JOIN[join_style])
        parts = _polygon_parts(grown)
        if not parts:
            logger.warning(f"outward offset {distance:.2f} m produced no polygon")
            return _empty()

        largest = max(parts, key=lambda p: p.area)
        return with_headings(_ring_xy(largest, ccw), closed=True)

    def multi_pass_offset(self, points, distance: float, passes: int,
                          join_style: JoinStyle = JoinStyle.ROUND) -> List[np.ndarray]:
        """
        多圈内缩，每圈以上一圈结果为输入

        Returns:
            由外到内的偏移环列表，塌缩时提前结束
        """
        result = []
        current = _as_xy(points, 3, 'boundary')
        for i in range(max(0, int(passes))):
            ring = self.inward_offset(current, distance, join_style)
            if len(ring) < 3:
                logger.info(f"multi-pass offset stopped after {i} of {passes} passes")
                break
            result.append(ring)
            current = ring[:, :2]
        return result

    def headland_line(self, points, tool_width: float, multiple: float = 1.0,
                      join_style: JoinStyle = JoinStyle.ROUND) -> np.ndarray:
        """按作业宽度倍数内缩得到地头线"""
        if tool_width <= 0.0:
            raise GeometryError(f'作业宽度必须大于 0，实际为 {tool_width}')
        return self.inward_offset(points, tool_width * multiple, join_style)

    # =========================================================================
    # 开放线
    # =========================================================================

    def line_offset(self, points, distance: float, side: str = 'left',
                    join_style: JoinStyle = JoinStyle.ROUND) -> np.ndarray:
        """
        开放折线的单侧偏移

        对折线做圆头缓冲，保留缓冲外环上距原线约为 distance 且位于指定一侧的点，
        按在首尾方向上的投影排序。

        Args:
            points: 折线点 (N >= 2)
            distance: 偏移距离 (米)
            side: 'left' 或 'right' (相对点序方向)

        Returns:
            (M, 3) 偏移线，无可用点时为空数组

        Raises:
            GeometryError: side 不合法
        """
        if side not in ('left', 'right'):
            raise GeometryError(f"side 必须是 'left' 或 'right'，实际为 {side!r}")
        xy = _as_xy(points, 2, 'line')
        if distance == 0.0:
            return with_headings(xy, closed=False)
        distance = abs(distance)

        line = LineString(xy)
        buffered = line.buffer(distance, quad_segs=self.buffer_resolution,
                               cap_style='round', join_style=_SHAPELY_JOIN[join_style])
        parts = _polygon_parts(buffered)
        if not parts:
            return _empty()
        candidates = np.asarray(max(parts, key=lambda p: p.area).exterior.coords)[:-1, :2]

        dist, cross = self._distance_and_side(xy, candidates)
        keep = np.abs(dist - distance) < distance * self.line_offset_tolerance
        keep &= (cross > 0.0) if side == 'left' else (cross < 0.0)
        selected = candidates[keep]
        if len(selected) < 2:
            logger.warning(f"line offset {distance:.2f} m kept {len(selected)} points")
            return _empty()

        direction = xy[-1] - xy[0]
        norm = np.hypot(direction[0], direction[1])
        if norm > 0.0:
            order = np.argsort(selected @ (direction / norm), kind='stable')
            selected = selected[order]
        return with_headings(selected, closed=False)

    # =========================================================================
    # 内部步骤
    # =========================================================================

    def _move_vertices(self, xy: np.ndarray, distance: float, sign: float) -> np.ndarray:
        """每个顶点沿平均左垂线移动"""
        prev = np.roll(xy, 1, axis=0)
        nxt = np.roll(xy, -1, axis=0)

        d1 = xy - prev
        d2 = nxt - xy
        len1 = np.hypot(d1[:, 0], d1[:, 1])
        len2 = np.hypot(d2[:, 0], d2[:, 1])
        d1 = np.where(len1[:, None] > self.min_normal_length, d1 / np.maximum(len1, 1e-12)[:, None], d1)
        d2 = np.where(len2[:, None] > self.min_normal_length, d2 / np.maximum(len2, 1e-12)[:, None], d2)

        # 左垂线 (-dN, dE)
        perp = np.column_stack([-(d1[:, 1] + d2[:, 1]) * 0.5, (d1[:, 0] + d2[:, 0]) * 0.5])
        perp_len = np.hypot(perp[:, 0], perp[:, 1])

        single = np.column_stack([-d1[:, 1], d1[:, 0]])
        degenerate = perp_len < self.min_normal_length
        normal = np.where(degenerate[:, None], single,
                          perp / np.maximum(perp_len, 1e-12)[:, None])
        return xy + normal * (sign * distance)

    def _cleanup(self, raw: np.ndarray, source, ccw: bool) -> Optional[np.ndarray]:
        """清理自相交，返回源多边形内面积最大的环"""
        cleaned = unary_union(make_valid(Polygon(raw)))
        parts = [p for p in _polygon_parts(cleaned)
                 if p.area > 0.0 and source.contains(p.representative_point())]
        if not parts:
            return None
        largest = max(parts, key=lambda p: p.area)
        ring = _ring_xy(largest, ccw)
        if len(ring) < 3:
            return None
        return ring

    def _round_corners(self, ring: np.ndarray, radius: float) -> np.ndarray:
        """把转角超过阈值的拐角替换为切线圆弧"""
        count = len(ring)
        if count < 3 or radius <= 0.0:
            return ring

        result = []
        for i in range(count):
            prev = ring[i - 1]
            curr = ring[i]
            nxt = ring[(i + 1) % count]

            v1 = curr - prev
            v2 = nxt - curr
            len1 = math.hypot(v1[0], v1[1])
            len2 = math.hypot(v2[0], v2[1])
            if len1 < 0.001 or len2 < 0.001:
                result.append(curr)
                continue
            v1 = v1 / len1
            v2 = v2 / len2

            turn = abs(math.atan2(v1[0] * v2[1] - v1[1] * v2[0], v1[0] * v2[0] + v1[1] * v2[1]))
            if turn <= self.corner_angle:
                result.append(curr)
                continue

            half = turn * 0.5
            tangent = radius / math.tan(half)
            tangent = min(tangent, len1 * self.tangent_edge_fraction, len2 * self.tangent_edge_fraction)

            arc_start = curr - v1 * tangent
            arc_end = curr + v2 * tangent

            bisect = v2 - v1
            bisect_len = math.hypot(bisect[0], bisect[1])
            if bisect_len < 0.001:
                result.append(curr)
                continue
            bisect = bisect / bisect_len

            actual_radius = tangent * math.tan(half)
            center = curr + bisect * (actual_radius / math.sin(half))

            start_angle = math.atan2(arc_start[1] - center[1], arc_start[0] - center[0])
            end_angle = math.atan2(arc_end[1] - center[1], arc_end[0] - center[0])
            sweep = math.remainder(end_angle - start_angle, 2.0 * math.pi)

            segments = max(self.min_arc_segments, int(abs(sweep) / self.arc_step))
            for j in range(segments + 1):
                a = start_angle + sweep * j / segments
                result.append(center + actual_radius * np.array([math.cos(a), math.sin(a)]))

        return np.array(result)

    def _fill_gaps(self, ring: np.ndarray) -> np.ndarray:
        """相邻点间距超过 max_gap 时均匀插值 (含首尾回绕)"""
        count = len(ring)
        if count < 3:
            return ring

        result = []
        for i in range(count):
            curr = ring[i]
            nxt = ring[(i + 1) % count]
            result.append(curr)
            gap = math.hypot(nxt[0] - curr[0], nxt[1] - curr[1])
            if gap > self.max_gap:
                inserts = int(gap / self.max_gap)
                for j in range(1, inserts + 1):
                    t = j / (inserts + 1)
                    result.append(curr + (nxt - curr) * t)
        return np.array(result)

    @staticmethod
    def _distance_and_side(line_xy: np.ndarray, pts: np.ndarray):
        """
        每个点到折线的最短距离，以及相对最近线段的左右 (叉积符号，左正右负)
        """
        a = line_xy[:-1]
        seg = line_xy[1:] - a
        seg_len_sq = np.maximum(np.sum(seg * seg, axis=1), 1e-12)

        rel = pts[:, None, :] - a[None, :, :]
        t = np.clip(np.sum(rel * seg[None, :, :], axis=2) / seg_len_sq[None, :], 0.0, 1.0)
        closest = a[None, :, :] + t[:, :, None] * seg[None, :, :]
        diff = pts[:, None, :] - closest
        d2 = np.sum(diff * diff, axis=2)

        nearest = np.argmin(d2, axis=1)
        rows = np.arange(len(pts))
        s = seg[nearest]
        r = rel[rows, nearest]
        cross = s[:, 0] * r[:, 1] - s[:, 1] * r[:, 0]
        return np.sqrt(d2[rows, nearest]), cross


__all__ = ['PolygonOffsetEngine']
