"""车辆配置

车辆几何和转向执行参数：
- 轴距 (枢轴点到转向轴)
- 最大转角
- 横滚补偿
- 掉头转向补偿
"""

VEHICLE_CONFIG = {
    'wheelbase': 3.3,                 # 轴距 (米)
    'max_steer_angle': 30.0,          # 最大转角 (度)，输出对称限幅
    'roll_comp_factor': 0.0,          # 横滚补偿系数，steer += roll * -factor
    'uturn_compensation': 1.0,        # 掉头时转角倍率
    'tool_width': 6.0,                # 作业宽度 (米)，用于地头线和掉头
    'half_wheel_track': 0.9,          # 半轮距 (米)，用于电车道
}

VEHICLE_VALIDATION_RULES = {
    'vehicle.wheelbase': (0.1, 20.0, '轴距 (米)'),
    'vehicle.max_steer_angle': (1.0, 90.0, '最大转角 (度)'),
    'vehicle.roll_comp_factor': (0.0, 10.0, '横滚补偿系数'),
    'vehicle.uturn_compensation': (0.1, 5.0, '掉头转角倍率'),
    'vehicle.tool_width': (0.1, 100.0, '作业宽度 (米)'),
    'vehicle.half_wheel_track': (0.0, 10.0, '半轮距 (米)'),
}
