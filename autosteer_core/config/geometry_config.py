"""几何配置

边界索引、多边形偏移、间距规整、电车道和路径平移参数。

阈值说明:
- 0.99 / 0.999 / 1.8 等系数来自实车调参
"""

GEOMETRY_CONFIG = {
    'boundary': {
        'grid_cell_size': 50.0,          # 边索引网格单元 (米)
        'section_margin': 1.0,           # 作业段包围盒外扩余量 (米)
        'fully_inside_ratio': 0.99,      # 段内比例高于此值视为完全在内
        'fully_outside_ratio': 0.01,     # 段内比例低于此值视为完全在外
    },
    'offset': {
        'min_normal_length': 0.001,      # 平均法向长度低于此值时退化为单边法向
        'corner_angle_deg': 20.0,        # 转角超过此值的拐角做圆弧过渡
        'corner_radius_factor': 0.8,     # 圆弧半径 = 偏移距离 × 系数
        'tangent_edge_fraction': 0.45,   # 切线长度不超过相邻边长的比例
        'arc_step_deg': 15.0,            # 每段圆弧对应角度
        'min_arc_segments': 3,
        'max_gap': 2.0,                  # 相邻点间距超过此值时插值补点 (米)
        'line_offset_tolerance': 0.5,    # 开放线偏移的点筛选容差 (× 偏移距离)
        'buffer_resolution': 16,         # 圆角缓冲每四分之一圆的段数
    },
    'spacing': {
        'fence_factor': 0.99,            # 距围栏平方距离 < (距离² × 系数) 的点被移除
        'insert_factor': 1.8,            # 间距平方 > (间距² × 系数) 时插入中点
    },
    'tramline': {
        'fence_factor': 0.999,           # 距任一边界点平方距离 < (偏移² × 系数) 的点被拒绝
        'min_spacing_sq': 2.0,           # 与上一个接受点的最小平方距离 (米²)
    },
    'nudge': {
        'collision_margin': 0.01,        # 平方距离 < (距离² - 余量) 的点被移除
        'min_spacing': 1.0,              # 平移后点间最小距离 (米)
        'min_points': 6,                 # 平移后曲线最少点数
        'smooth_spacing': 1.2,           # Catmull-Rom 平滑插点间距 (米)
    },
}

GEOMETRY_VALIDATION_RULES = {
    'geometry.boundary.grid_cell_size': (1.0, 10000.0, '边索引网格单元 (米)'),
    'geometry.boundary.section_margin': (0.0, 100.0, '作业段外扩余量 (米)'),
    'geometry.boundary.fully_inside_ratio': (0.5, 1.0, '完全在内比例'),
    'geometry.boundary.fully_outside_ratio': (0.0, 0.5, '完全在外比例'),
    'geometry.offset.min_normal_length': (0.0, 1.0, '最小法向长度'),
    'geometry.offset.corner_angle_deg': (0.0, 180.0, '圆弧过渡拐角阈值 (度)'),
    'geometry.offset.corner_radius_factor': (0.0, 10.0, '圆弧半径系数'),
    'geometry.offset.tangent_edge_fraction': (0.0, 0.5, '切线边长比例'),
    'geometry.offset.arc_step_deg': (1.0, 90.0, '圆弧步进角 (度)'),
    'geometry.offset.min_arc_segments': (1, 100, '最少圆弧段数'),
    'geometry.offset.max_gap': (0.1, 100.0, '最大点间隙 (米)'),
    'geometry.offset.line_offset_tolerance': (0.01, 1.0, '开放线偏移容差'),
    'geometry.offset.buffer_resolution': (1, 128, '圆角缓冲分辨率'),
    'geometry.spacing.fence_factor': (0.0, 1.0, '围栏距离系数'),
    'geometry.spacing.insert_factor': (1.0, 4.0, '插点间距系数'),
    'geometry.tramline.fence_factor': (0.0, 1.0, '电车道边界距离系数'),
    'geometry.tramline.min_spacing_sq': (0.0, 100.0, '电车道最小平方间距 (米²)'),
    'geometry.nudge.collision_margin': (0.0, 10.0, '平移碰撞余量 (米²)'),
    'geometry.nudge.min_spacing': (0.0, 100.0, '平移最小间距 (米)'),
    'geometry.nudge.min_points': (2, 1000, '平移后最少点数'),
    'geometry.nudge.smooth_spacing': (0.1, 100.0, '平移平滑插点间距 (米)'),
}
