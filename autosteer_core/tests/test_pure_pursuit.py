"""
Pure Pursuit 控制器测试

验证:
1. AB 线目标点和转角符号
2. 开放曲线的目标点行走、路径结束和越界
3. 闭合环回绕
4. 等高线锁定
5. 横滚补偿、限幅和积分
"""
import numpy as np
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from autosteer_core.core.data_types import GuidancePath, GuidanceInput, GuidanceState
from autosteer_core.core.enums import GuidanceStatus, SteeringAlgorithm
from autosteer_core.config import get_default_config
from autosteer_core.tracker.pure_pursuit import (
    PurePursuitController, walk_goal_point, apply_roll_and_clamp,
)
from autosteer_core.tests.fixtures import north_curve, circle_points, make_pose


def test_line_goal_and_steer_sign():
    """测试 AB 线右侧偏离时转角向左"""
    controller = PurePursuitController()
    path = GuidancePath.line((0.0, 0.0), (0.0, 100.0))

    out = controller.compute(make_pose(2.0, 50.0), path, GuidanceState(),
                             GuidanceInput(lookahead=10.0))
    assert out.is_valid
    assert abs(out.cross_track_error - 2.0) < 1e-9
    assert out.wire_distance_off == 2000
    assert np.allclose(out.goal_point, (0.0, 60.0))
    assert np.allclose(out.closest_point, (0.0, 50.0))

    expected = np.degrees(np.arctan(2.0 * -2.0 * 3.3 / 104.0))
    assert abs(out.steer_angle_deg - expected) < 1e-9
    assert out.steer_angle_deg < 0
    assert abs(out.pure_pursuit_radius - (-26.0)) < 1e-9
    assert out.is_heading_same_way
    assert not out.find_global
    print("✓ test_line_goal_and_steer_sign passed")


def test_line_opposite_direction():
    """测试反向行驶 AB 线时目标点在另一侧，横向误差翻转"""
    controller = PurePursuitController()
    path = GuidancePath.line((0.0, 0.0), (0.0, 100.0))

    out = controller.compute(make_pose(2.0, 50.0, heading=np.pi), path, GuidanceState(),
                             GuidanceInput(lookahead=10.0))
    assert out.is_valid
    assert not out.is_heading_same_way
    assert np.allclose(out.goal_point, (0.0, 40.0))
    assert abs(out.cross_track_error + 2.0) < 1e-9
    # 朝南行驶时线在右侧
    assert out.steer_angle_deg > 0
    print("✓ test_line_opposite_direction passed")


def test_line_on_track_and_reverse():
    """测试在线上转角为零，倒车时目标点在车后"""
    controller = PurePursuitController()
    path = GuidancePath.line((0.0, 0.0), (0.0, 100.0))

    out = controller.compute(make_pose(0.0, 50.0), path, GuidanceState(), GuidanceInput(lookahead=5.0))
    assert abs(out.steer_angle_deg) < 1e-9
    assert abs(out.pure_pursuit_radius - 500.0) < 1e-9

    out = controller.compute(make_pose(0.0, 50.0), path, GuidanceState(integral=0.1),
                             GuidanceInput(lookahead=5.0, is_reverse=True), integral_gain=1.0)
    assert out.is_valid
    assert out.goal_point[1] < 50.0
    assert out.state.integral == 0.0
    print("✓ test_line_on_track_and_reverse passed")


def test_curve_goal_walk():
    """测试开放曲线目标点沿路径行走"""
    controller = PurePursuitController()
    path = GuidancePath.from_xy(north_curve(100.0, 1.0))

    out = controller.compute(make_pose(1.0, 50.3), path, GuidanceState(), GuidanceInput(lookahead=4.0))
    assert out.is_valid
    assert np.allclose(out.goal_point, (0.0, 54.3))
    assert out.current_index == 50
    assert abs(out.cross_track_error - 1.0) < 1e-9
    assert out.steer_angle_deg < 0
    assert not out.is_end_of_track
    print("✓ test_curve_goal_walk passed")


def test_curve_end_of_track():
    """测试目标点走到终点时标记路径结束"""
    controller = PurePursuitController()
    path = GuidancePath.from_xy(north_curve(100.0, 1.0))

    out = controller.compute(make_pose(0.2, 97.3), path, GuidanceState(), GuidanceInput(lookahead=4.0))
    assert out.is_valid
    assert out.goal_exhausted
    assert out.is_end_of_track
    assert np.allclose(out.goal_point, (0.0, 100.0))
    print("✓ test_curve_end_of_track passed")


def test_curve_track_exhausted():
    """测试枢轴点越过开放曲线终点"""
    controller = PurePursuitController()
    path = GuidancePath.from_xy(north_curve(100.0, 1.0))

    out = controller.compute(make_pose(0.5, 101.0), path, GuidanceState(), GuidanceInput(lookahead=4.0))
    assert out.status == GuidanceStatus.TRACK_EXHAUSTED
    assert not out.is_valid
    assert out.is_end_of_track
    assert out.find_global
    assert out.wire_steer_angle == 32000
    print("✓ test_curve_track_exhausted passed")


def test_past_end_keeps_guiding_when_reversing_or_disengaged():
    """测试倒车或未接合自动转向时越过终点仍输出有效转向"""
    controller = PurePursuitController()
    path = GuidancePath.from_xy(north_curve(100.0, 1.0))
    pose = make_pose(0.5, 101.0)

    out = controller.compute(pose, path, GuidanceState(),
                             GuidanceInput(lookahead=4.0, is_reverse=True))
    assert out.is_valid
    assert not out.is_end_of_track
    assert np.allclose(out.goal_point, (0.0, 97.0))

    out = controller.compute(pose, path, GuidanceState(),
                             GuidanceInput(lookahead=4.0, is_auto_steer_on=False))
    assert out.is_valid
    assert not out.is_end_of_track
    assert out.goal_exhausted
    print("✓ test_past_end_keeps_guiding_when_reversing_or_disengaged passed")


def test_loop_wraps():
    """测试闭合环目标点回绕过首点"""
    controller = PurePursuitController()
    path = GuidancePath.from_xy(circle_points(50.0, 360), closed=True)

    theta = np.radians(-0.5)
    pose = make_pose(49.9 * np.cos(theta), 49.9 * np.sin(theta), heading=np.radians(0.5))
    out = controller.compute(pose, path, GuidanceState(), GuidanceInput(lookahead=10.0))
    assert out.is_valid
    assert not out.goal_exhausted
    assert out.goal_point[1] > 5.0

    # 环内侧偏离 1 米: 位于左侧，转角向右
    out = controller.compute(make_pose(49.0, 0.0), path, GuidanceState(), GuidanceInput(lookahead=4.0))
    assert out.is_valid
    assert out.cross_track_error < 0
    assert out.steer_angle_deg > 0
    print("✓ test_loop_wraps passed")


def test_contour_lock():
    """测试等高线点数要求和锁定后端部失锁"""
    controller = PurePursuitController()

    short = GuidancePath.from_xy(north_curve(5.0, 1.0), contour=True)
    out = controller.compute(make_pose(0.5, 2.3), short, GuidanceState())
    assert out.status == GuidanceStatus.LOST_LOCK

    contour = GuidancePath.from_xy(north_curve(20.0, 1.0), contour=True)
    locked = GuidanceInput(lookahead=3.0, contour_locked=True)

    out = controller.compute(make_pose(0.5, 10.3), contour, GuidanceState(), locked)
    assert out.is_valid
    assert out.contour_locked
    # 横向误差从枢轴点量取
    assert abs(out.cross_track_error - 0.5) < 1e-9

    out = controller.compute(make_pose(0.5, 0.3), contour, GuidanceState(), locked)
    assert out.status == GuidanceStatus.LOST_LOCK
    assert not out.contour_locked
    print("✓ test_contour_lock passed")


def test_roll_compensation_and_clamp():
    """测试横滚补偿和对称限幅"""
    config = get_default_config()
    config['vehicle']['roll_comp_factor'] = 1.0
    controller = PurePursuitController(config)
    path = GuidancePath.line((0.0, 0.0), (0.0, 100.0))

    out = controller.compute(make_pose(0.0, 50.0, roll=2.0), path, GuidanceState())
    assert abs(out.steer_angle_deg - (-2.0)) < 1e-9

    out = controller.compute(make_pose(0.0, 50.0, roll=88888), path, GuidanceState())
    assert abs(out.steer_angle_deg) < 1e-9

    out = controller.compute(make_pose(5.0, 50.0), path, GuidanceState(), GuidanceInput(lookahead=1.0))
    assert out.steer_angle_deg == -30.0

    assert apply_roll_and_clamp(50.0, make_pose(0.0, 0.0), 0.0, 30.0) == 30.0
    print("✓ test_roll_compensation_and_clamp passed")


def test_integral_gain_updates_state():
    """测试积分增益启用时滤波器状态更新"""
    controller = PurePursuitController()
    path = GuidancePath.line((0.0, 0.0), (0.0, 100.0))

    out = controller.compute(make_pose(2.0, 50.0), path, GuidanceState(),
                             GuidanceInput(lookahead=10.0), integral_gain=1.0)
    assert abs(out.state.distance_error - 0.4) < 1e-12
    assert abs(out.state.integral - (-0.008)) < 1e-12
    assert out.state.counter == 1
    print("✓ test_integral_gain_updates_state passed")


def test_too_few_points():
    """测试点数不足时失锁并要求全局搜索"""
    controller = PurePursuitController()
    out = controller.compute(make_pose(0.0, 0.0), GuidancePath([[0.0, 0.0]]), GuidanceState(),
                             GuidanceInput(current_index=7, find_global=False))
    assert out.status == GuidanceStatus.LOST_LOCK
    assert out.find_global
    assert out.steer_angle_deg == 0.0
    print("✓ test_too_few_points passed")


def test_walk_goal_point_open_and_closed():
    """测试目标点行走在开放路径端点停止、闭合路径回绕"""
    xy = north_curve(10.0, 1.0)
    goal, exhausted = walk_goal_point(xy, 2, 3, (0.0, 2.5), 3.0, True, False)
    assert np.allclose(goal, (0.0, 5.5)) and not exhausted

    goal, exhausted = walk_goal_point(xy, 2, 3, (0.0, 2.5), 3.0, False, False)
    assert np.allclose(goal, (0.0, 0.0)) and exhausted

    square = np.array([[0.0, 0.0], [10.0, 0.0], [10.0, 10.0], [0.0, 10.0]])
    goal, exhausted = walk_goal_point(square, 2, 3, (5.0, 10.0), 10.0, True, True)
    assert np.allclose(goal, (0.0, 5.0)) and not exhausted
    print("✓ test_walk_goal_point_open_and_closed passed")


def test_controller_parameters():
    """测试控制器参数导出"""
    controller = PurePursuitController()
    assert controller.algorithm == SteeringAlgorithm.PURE_PURSUIT
    params = controller.get_parameters()
    assert params['wheelbase'] == 3.3
    assert params['gains']['clamp'] == 0.2
    assert params['contour_gains']['unwind_factor'] == -0.06
    print("✓ test_controller_parameters passed")
