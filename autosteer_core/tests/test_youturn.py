"""
掉头跟踪测试
"""
import numpy as np
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from autosteer_core.core.data_types import GuidancePath, GuidanceInput, GuidanceState
from autosteer_core.core.enums import TurnState, TurnStyle
from autosteer_core.config import get_default_config
from autosteer_core.tracker.pure_pursuit import PurePursuitController
from autosteer_core.tracker.stanley import StanleyController
from autosteer_core.tracker.youturn import YouTurnTracker
from autosteer_core.tests.fixtures import u_turn_points, make_pose


def test_following_turn_path():
    """测试在掉头路径上时持续跟踪"""
    tracker = YouTurnTracker(PurePursuitController())
    pts = u_turn_points()

    result = tracker.update(make_pose(0.2, 5.2), pts, GuidanceState())
    assert result.turn_state == TurnState.FOLLOWING
    assert not result.is_complete
    assert result.guidance is not None and result.guidance.is_valid
    assert result.guidance.steer_angle_deg < 0
    assert result.remaining_points == len(pts) - 11
    print("✓ test_following_turn_path passed")


def test_uturn_compensation_scales_steer():
    """测试掉头转角倍率"""
    config = get_default_config()
    config['vehicle']['uturn_compensation'] = 2.0
    controller = PurePursuitController(config)
    tracker = YouTurnTracker(controller, config)

    pts = u_turn_points()
    pose = make_pose(0.2, 5.2)
    plain = controller.compute(pose, GuidancePath(pts), GuidanceState(),
                               GuidanceInput(lookahead=4.0, is_heading_same_way=True,
                                             find_global=True, is_youturn_triggered=True),
                               integral_gain=0.0)
    result = tracker.update(pose, pts, GuidanceState(), lookahead=4.0)
    expected = float(np.clip(plain.steer_angle_deg * 2.0, -30.0, 30.0))
    assert abs(result.guidance.steer_angle_deg - expected) < 1e-9
    print("✓ test_uturn_compensation_scales_steer passed")


def test_complete_at_end():
    """测试到达掉头路径末端时完成，之后保持完成直到 reset"""
    tracker = YouTurnTracker(PurePursuitController())
    pts = u_turn_points()

    result = tracker.update(make_pose(10.1, 0.3, heading=np.pi), pts, GuidanceState())
    assert result.is_complete
    assert result.guidance is None

    result = tracker.update(make_pose(0.2, 5.2), pts, GuidanceState())
    assert result.is_complete

    tracker.reset()
    result = tracker.update(make_pose(0.2, 5.2), pts, GuidanceState())
    assert result.turn_state == TurnState.FOLLOWING
    print("✓ test_complete_at_end passed")


def test_complete_when_far_from_path():
    """测试离开掉头路径时完成"""
    pts = u_turn_points()
    for controller in (PurePursuitController(), StanleyController()):
        tracker = YouTurnTracker(controller)
        result = tracker.update(make_pose(30.0, 5.0), pts, GuidanceState())
        assert result.is_complete
    print("✓ test_complete_when_far_from_path passed")


def test_pure_pursuit_tolerates_offset_at_start():
    """测试 Pure Pursuit 在首段偏离较远时仍继续跟踪"""
    tracker = YouTurnTracker(PurePursuitController())
    result = tracker.update(make_pose(-3.0, 0.0), u_turn_points(), GuidanceState())
    assert result.turn_state == TurnState.FOLLOWING
    print("✓ test_pure_pursuit_tolerates_offset_at_start passed")


def test_lost_distance_by_algorithm():
    """测试失锁距离按控制器类型选择"""
    assert YouTurnTracker(PurePursuitController()).lost_distance == 2.0
    assert YouTurnTracker(StanleyController()).lost_distance == 4.0
    print("✓ test_lost_distance_by_algorithm passed")


def test_stanley_following():
    """测试 Stanley 跟踪掉头路径"""
    tracker = YouTurnTracker(StanleyController())
    result = tracker.update(make_pose(0.2, 5.2), GuidancePath(u_turn_points()), GuidanceState())
    assert result.turn_state == TurnState.FOLLOWING
    assert result.guidance.is_valid
    assert result.guidance.state.integral == 0.0
    print("✓ test_stanley_following passed")


def test_empty_path_and_k_turn():
    """测试空路径和 K 型掉头倒车段"""
    tracker = YouTurnTracker(PurePursuitController())
    assert tracker.update(make_pose(0.0, 0.0), np.zeros((0, 2)), GuidanceState()).is_complete

    tracker.reset()
    result = tracker.update(make_pose(0.2, 5.2), u_turn_points(), GuidanceState(),
                            is_reverse=True, turn_style=TurnStyle.K_TURN)
    assert result.is_complete
    print("✓ test_empty_path_and_k_turn passed")


def test_close_legs_do_not_complete_early():
    """测试入口腿和出口腿相距很近时，在入口处不会提前完成"""
    # 半径 1.5: 出口腿距入口腿 3 米
    turn = GuidancePath(u_turn_points(radius=1.5, leg=10.0, spacing=0.5))
    tracker = YouTurnTracker(PurePursuitController())
    result = tracker.update(make_pose(1.2, -0.5), turn, GuidanceState())
    assert result.turn_state == TurnState.FOLLOWING
    assert result.guidance.is_valid
    assert result.remaining_points == len(turn) - 1
    print("✓ test_close_legs_do_not_complete_early passed")


def test_stanley_measures_from_steer_axle():
    """测试 Stanley 用转向轴位置判断是否离开掉头路径"""
    tracker = YouTurnTracker(StanleyController())
    # 枢轴点离首点 4.5 米，转向轴在首点后 1.2 米
    result = tracker.update(make_pose(0.0, -4.5), GuidancePath(u_turn_points()), GuidanceState())
    assert result.turn_state == TurnState.FOLLOWING

    tracker.reset()
    # 朝南时转向轴远离路径
    result = tracker.update(make_pose(0.0, -1.0, heading=np.pi),
                            GuidancePath(u_turn_points()), GuidanceState())
    assert result.is_complete
    print("✓ test_stanley_measures_from_steer_axle passed")
