"""
边界电车道

沿围栏内侧生成两条轮迹线 (外侧和内侧)，相距一个轮距:

    outer offset = tram_width / 2 - half_wheel_track
    inner offset = tram_width / 2 + half_wheel_track
    point = fence - offset × (sin(h + π/2), cos(h + π/2))

即每个围栏点沿航向左侧移动 offset，逆时针围栏的左侧为田块内侧。

过滤:
- 距任一围栏点平方距离 < offset² × 0.999 的点被拒绝 (凹角处偏移点越过对边)
- 与上一个接受点平方距离 <= 2.0 的点被跳过
"""
from typing import Dict, Any, List, Optional, Tuple
import logging
import numpy as np
from scipy.spatial import cKDTree

from ..core.constants import HALF_PI
from ..core.geometry_math import with_headings
from ..core.validators import ensure_point_array, ensure_positive
from ..config.default_config import DEFAULT_CONFIG
from ..config.validation import get_config_value

logger = logging.getLogger(__name__)


class TramlineGenerator:
    """
    边界电车道生成器

    Args:
        config: 完整配置字典，半轮距默认取 vehicle.half_wheel_track
    """

    def __init__(self, config: Dict[str, Any] = None):
        config = config if config is not None else DEFAULT_CONFIG
        tram = get_config_value(config, 'geometry.tramline', {}, DEFAULT_CONFIG)
        defaults = DEFAULT_CONFIG['geometry']['tramline']
        self.fence_factor = tram.get('fence_factor', defaults['fence_factor'])
        self.min_spacing_sq = tram.get('min_spacing_sq', defaults['min_spacing_sq'])
        self.half_wheel_track = get_config_value(config, 'vehicle.half_wheel_track',
                                                 DEFAULT_CONFIG['vehicle']['half_wheel_track'],
                                                 DEFAULT_CONFIG)

    def outer_tramline(self, fence, tram_width: float, half_wheel_track: Optional[float] = None,
                       pass_index: int = 0) -> np.ndarray:
        """外侧轮迹线，pass_index 每增加 1 向内移动一个电车道宽度"""
        hwt = self.half_wheel_track if half_wheel_track is None else half_wheel_track
        offset = tram_width * 0.5 - hwt + tram_width * pass_index
        return self.offset_line(fence, offset)

    def inner_tramline(self, fence, tram_width: float, half_wheel_track: Optional[float] = None,
                       pass_index: int = 0) -> np.ndarray:
        """内侧轮迹线"""
        hwt = self.half_wheel_track if half_wheel_track is None else half_wheel_track
        offset = tram_width * 0.5 + hwt + tram_width * pass_index
        return self.offset_line(fence, offset)

    def generate(self, fence, tram_width: float, passes: int = 1,
                 half_wheel_track: Optional[float] = None) -> List[Tuple[np.ndarray, np.ndarray]]:
        """
        生成多圈电车道

        Returns:
            [(outer, inner), ...]，由外到内。某一圈两条线都为空时停止
        """
        ensure_positive(tram_width, 'tram_width')
        result = []
        for k in range(max(0, int(passes))):
            outer = self.outer_tramline(fence, tram_width, half_wheel_track, k)
            inner = self.inner_tramline(fence, tram_width, half_wheel_track, k)
            if len(outer) == 0 and len(inner) == 0:
                logger.info(f"tramline generation stopped after {k} of {passes} passes")
                break
            result.append((outer, inner))
        return result

    def offset_line(self, fence, offset: float) -> np.ndarray:
        """
        围栏点沿航向左侧偏移并过滤

        Args:
            fence: (N, 2) 或 (N, 3) 围栏点，两列时按闭合环计算航向
            offset: 偏移距离 (米)

        Returns:
            (M, 2) 轮迹点
        """
        arr = ensure_point_array(fence, name='fence')
        if len(arr) == 0:
            return np.zeros((0, 2))
        if arr.shape[1] == 2:
            arr = with_headings(arr, closed=True)

        fence_xy = arr[:, :2]
        perp = arr[:, 2] + HALF_PI
        candidates = np.column_stack([fence_xy[:, 0] - np.sin(perp) * offset,
                                      fence_xy[:, 1] - np.cos(perp) * offset])

        dist, _ = cKDTree(fence_xy).query(candidates, k=1)
        clear = dist * dist >= offset * offset * self.fence_factor

        accepted = []
        for point, ok in zip(candidates, clear):
            if not ok:
                continue
            if accepted:
                last = accepted[-1]
                if (point[0] - last[0]) ** 2 + (point[1] - last[1]) ** 2 <= self.min_spacing_sq:
                    continue
            accepted.append(point)

        logger.debug(f"tramline offset {offset:.2f} m: {len(accepted)} of {len(candidates)} points")
        return np.array(accepted).reshape(-1, 2)


__all__ = ['TramlineGenerator']
