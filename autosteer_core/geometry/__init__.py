"""田块几何模块

- boundary.py: 边界多边形、网格边索引、作业段分类
- polygon_offset.py: 内缩/外扩/开放线偏移 (shapely)
- spacing.py: 转弯线间距规整
- curve_processing.py: 录制曲线预处理
- tramline.py: 边界电车道
- track_nudge.py: 导航线平移
"""
from .boundary import EdgeGridIndex, BoundaryPolygon
from .polygon_offset import PolygonOffsetEngine
from .spacing import SpacingNormalizer, closed_line_headings
from .curve_processing import (
    ensure_minimum_spacing, interpolate, calculate_headings, average_heading, preprocess,
)
from .tramline import TramlineGenerator
from .track_nudge import TrackNudger, catmull_rom

__all__ = [
    'EdgeGridIndex',
    'BoundaryPolygon',
    'PolygonOffsetEngine',
    'SpacingNormalizer',
    'closed_line_headings',
    'ensure_minimum_spacing',
    'interpolate',
    'calculate_headings',
    'average_heading',
    'preprocess',
    'TramlineGenerator',
    'TrackNudger',
    'catmull_rom',
]
