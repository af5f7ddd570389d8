"""导航控制配置

Pure Pursuit 和 Stanley 控制器参数、漂移补偿滤波器增益族、线段搜索参数。

滤波器增益族说明:
=================
三个增益族共享同一个转换函数 (tracker/drift_filter.py)，只有常数不同:

- pure_pursuit: AB 线、曲线和闭合环的目标点积分
- contour: 等高线，回卷系数更陡
- stanley: 虚拟偏移线积分，限幅更宽、衰减更慢、微分不加倍

这些常数来自实车调参，没有理论推导，修改前应在田间验证。
"""

GUIDANCE_CONFIG = {
    'pure_pursuit': {
        'integral_gain': 0.0,            # 积分增益，0 表示禁用积分
        'radius_limit': 500.0,           # 转弯半径显示范围 (米)
        'end_of_track_distance': 0.5,    # 目标点距终点小于此值时标记路径结束 (米)
        'contour_min_points': 9,         # 等高线最少点数
        'contour_end_margin': 2,         # 锁定后距两端少于此点数则失锁
    },
    'stanley': {
        'heading_gain': 1.0,             # 航向误差增益
        'distance_gain': 0.8,            # 横向误差增益
        'integral_gain': 0.0,            # 虚拟偏移线积分增益
        'min_curve_points': 6,           # 曲线最少点数
        'xte_attenuation_limit': 0.5,    # |XTE| 超过此值时转角乘 0.5 (米)
    },
    'filter': {
        'pure_pursuit': {
            'error_weight': 0.2,         # 新误差权重
            'derivative_interval': 4,    # counter > 此值时计算微分
            'derivative_scale': 2.0,
            'derivative_limit': 0.1,     # |微分| 低于此值才累积
            'min_speed': 2.5,            # 累积的最低车速 (km/h)
            'unwind_factor': -0.04,      # 积分与误差同号时的系数
            'accumulate_factor': -0.02,  # 积分与误差异号时的系数
            'deadband': 0.02,            # 累积死区 (米)
            'clamp': 0.2,                # 积分限幅 (米)
            'decay': 0.95,               # 不累积时的衰减系数
        },
        'contour': {
            'error_weight': 0.2,
            'derivative_interval': 4,
            'derivative_scale': 2.0,
            'derivative_limit': 0.1,
            'min_speed': 2.5,
            'unwind_factor': -0.06,
            'accumulate_factor': -0.02,
            'deadband': 0.02,
            'clamp': 0.2,
            'decay': 0.95,
        },
        'stanley': {
            'error_weight': 0.2,
            'derivative_interval': 4,
            'derivative_scale': 1.0,
            'derivative_limit': 0.1,
            'min_speed': 2.5,
            'unwind_factor': -0.06,
            'accumulate_factor': -0.02,
            'deadband': 0.02,
            'clamp': 2.0,
            'decay': 0.97,
        },
    },
    'locator': {
        'coarse_stride': 10,             # 全局粗搜索步长
        'refine_window': 8,              # 全局精搜索窗口 (±点数)
        'stanley_refine_window': 7,      # Stanley 精搜索窗口
    },
    'youturn': {
        'pure_pursuit_lost_distance': 2.0,   # 距最近点超过此值视为离开掉头路径 (米)
        'stanley_lost_distance': 4.0,
    },
}

GUIDANCE_VALIDATION_RULES = {
    'guidance.pure_pursuit.integral_gain': (0.0, 10.0, 'Pure Pursuit 积分增益'),
    'guidance.pure_pursuit.radius_limit': (1.0, 10000.0, '转弯半径显示范围 (米)'),
    'guidance.pure_pursuit.end_of_track_distance': (0.0, 10.0, '路径结束判定距离 (米)'),
    'guidance.pure_pursuit.contour_min_points': (3, 1000, '等高线最少点数'),
    'guidance.pure_pursuit.contour_end_margin': (0, 100, '等高线端部失锁点数'),
    'guidance.stanley.heading_gain': (0.0, 10.0, 'Stanley 航向增益'),
    'guidance.stanley.distance_gain': (0.0, 10.0, 'Stanley 横向增益'),
    'guidance.stanley.integral_gain': (0.0, 10.0, 'Stanley 积分增益'),
    'guidance.stanley.min_curve_points': (3, 1000, 'Stanley 曲线最少点数'),
    'guidance.stanley.xte_attenuation_limit': (0.01, 10.0, 'Stanley 衰减阈值 (米)'),
    'guidance.locator.coarse_stride': (1, 1000, '全局粗搜索步长'),
    'guidance.locator.refine_window': (1, 1000, '全局精搜索窗口'),
    'guidance.locator.stanley_refine_window': (1, 1000, 'Stanley 精搜索窗口'),
    'guidance.youturn.pure_pursuit_lost_distance': (0.1, 100.0, 'Pure Pursuit 掉头失锁距离 (米)'),
    'guidance.youturn.stanley_lost_distance': (0.1, 100.0, 'Stanley 掉头失锁距离 (米)'),
}

# 每个增益族的公共验证规则
for _family in ('pure_pursuit', 'contour', 'stanley'):
    _prefix = f'guidance.filter.{_family}'
    GUIDANCE_VALIDATION_RULES.update({
        f'{_prefix}.error_weight': (0.0, 1.0, f'{_family} 误差权重'),
        f'{_prefix}.derivative_interval': (0, 100, f'{_family} 微分间隔'),
        f'{_prefix}.derivative_scale': (0.0, 100.0, f'{_family} 微分倍率'),
        f'{_prefix}.derivative_limit': (0.0, 100.0, f'{_family} 微分稳定阈值'),
        f'{_prefix}.min_speed': (0.0, 100.0, f'{_family} 累积最低车速 (km/h)'),
        f'{_prefix}.unwind_factor': (-1.0, 0.0, f'{_family} 回卷系数'),
        f'{_prefix}.accumulate_factor': (-1.0, 0.0, f'{_family} 累积系数'),
        f'{_prefix}.deadband': (0.0, 1.0, f'{_family} 死区 (米)'),
        f'{_prefix}.clamp': (0.0, 100.0, f'{_family} 积分限幅 (米)'),
        f'{_prefix}.decay': (0.0, 1.0, f'{_family} 衰减系数'),
    })

del _family, _prefix
