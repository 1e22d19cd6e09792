import pytest

pytest.importorskip('rclpy')
sensor_msgs = pytest.importorskip('sensor_msgs.msg')

from sensor_calibration.calibration_node import joint_state_to_delta  # noqa: E402


def test_joint_state_to_delta():
    msg = sensor_msgs.JointState()
    msg.name = ['joint1', 'joint2']
    msg.position = [0.5, -1.0]

    delta = joint_state_to_delta(msg, 'arm')

    assert delta == {'updates': [{
        '$source': 'arm',
        'values': [
            {'path': 'joint1', 'value': 0.5},
            {'path': 'joint2', 'value': -1.0},
        ],
    }]}
