#!/usr/bin/env python3
"""
ROS 2 node applying the calibration plugin to joint states.

Subscribes to raw joint states, runs each message through the calibration
plugin as one delta (joint name = path, position = value) and republishes
the calibrated message.
"""

import threading
from pathlib import Path
from typing import Optional

import rclpy
from rclpy.node import Node
from rclpy.executors import MultiThreadedExecutor
from rclpy.callback_groups import ReentrantCallbackGroup

from sensor_msgs.msg import JointState
from std_msgs.msg import String

from sensor_calibration.bus import DeltaBus
from sensor_calibration.config import PluginConfig
from sensor_calibration.plugin import CalibrationPlugin


def joint_state_to_delta(msg: JointState, source: str) -> dict:
    """Build a delta with one value per joint position."""
    return {
        'updates': [{
            '$source': source,
            'values': [
                {'path': name, 'value': float(position)}
                for name, position in zip(msg.name, msg.position)
            ],
        }],
    }


class CalibrationNode(Node):
    """
    ROS2 node calibrating joint positions.

    Topics Published:
        output_topic (sensor_msgs/JointState): Calibrated joint states
        ~/status (std_msgs/String): Last conversion per calibrated joint

    Topics Subscribed:
        input_topic (sensor_msgs/JointState): Raw joint states
    """

    def __init__(self, config: Optional[PluginConfig] = None):
        super().__init__('sensor_calibration')

        self.callback_group = ReentrantCallbackGroup()
        self._lock = threading.Lock()

        self.declare_parameter('config_file', '')
        self.declare_parameter('input_topic', '/joint_states_raw')
        self.declare_parameter('output_topic', '/joint_states')
        self.declare_parameter('status_rate', 1.0)

        config_file = self.get_parameter('config_file').get_parameter_value().string_value
        self.input_topic = self.get_parameter('input_topic').get_parameter_value().string_value
        output_topic = self.get_parameter('output_topic').get_parameter_value().string_value
        status_rate = self.get_parameter('status_rate').get_parameter_value().double_value

        # Fall back to the default location
        if not config_file and PluginConfig.default_config_path().exists():
            config_file = str(PluginConfig.default_config_path())
        options_path = Path(config_file) if config_file else None
        if config is None:
            config = self._load_config(options_path)

        self.bus = DeltaBus(options_path=options_path, logger=self.get_logger())
        self.bus.subscribe(self._publish_delta)
        self.plugin = CalibrationPlugin(self.bus)
        self.plugin.start(config)

        self._pending: Optional[JointState] = None

        # Publishers
        self.joint_state_pub = self.create_publisher(JointState, output_topic, 10)
        self.status_pub = self.create_publisher(String, '~/status', 10)

        # Subscribers
        self.joint_state_sub = self.create_subscription(
            JointState, self.input_topic,
            self._joint_state_callback, 10,
            callback_group=self.callback_group)

        if status_rate > 0:
            self.status_timer = self.create_timer(
                1.0 / status_rate, self._publish_status,
                callback_group=self.callback_group)

        self.get_logger().info(
            f"Calibration node started with {len(self.plugin.calibrations)} active "
            f"calibrations: {self.input_topic} -> {output_topic}")
        if config.paths:
            self.get_logger().info(f"Configured paths: {', '.join(config.paths)}")

    def _load_config(self, path: Optional[Path]) -> PluginConfig:
        """Load the configuration file, or start with no calibrations."""
        if path is None:
            return PluginConfig()
        try:
            return PluginConfig.load(path)
        except Exception as e:
            self.get_logger().warn(f"Failed to load config file: {e}")
            return PluginConfig()

    def _joint_state_callback(self, msg: JointState):
        """Calibrate one joint state message and republish it."""
        source = msg.header.frame_id or self.input_topic
        with self._lock:
            self._pending = msg
            self.bus.publish(joint_state_to_delta(msg, source))
            self._pending = None

    def _publish_delta(self, delta: dict):
        """Copy calibrated values back into the pending message."""
        msg = self._pending
        if msg is None:
            return
        positions = list(msg.position)
        for update in delta.get('updates') or []:
            for i, path_value in enumerate(update.get('values') or []):
                if i < len(positions):
                    positions[i] = float(path_value['value'])
        msg.position = positions
        self.joint_state_pub.publish(msg)

    def _publish_status(self):
        msg = String()
        msg.data = self.plugin.status_message()
        self.status_pub.publish(msg)

    def shutdown(self):
        """Deregister the calibration handlers."""
        self.plugin.stop()
        self.get_logger().info("Calibration node shutdown complete")


def main(args=None):
    rclpy.init(args=args)

    node = CalibrationNode()

    executor = MultiThreadedExecutor()
    executor.add_node(node)

    try:
        executor.spin()
    except KeyboardInterrupt:
        pass
    finally:
        node.shutdown()
        node.destroy_node()
        rclpy.shutdown()


if __name__ == '__main__':
    main()
