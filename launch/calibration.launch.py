#!/usr/bin/env python3
"""Launch file for the sensor calibration node."""

from launch import LaunchDescription
from launch.actions import DeclareLaunchArgument
from launch.substitutions import LaunchConfiguration
from launch_ros.actions import Node


def generate_launch_description():
    """Generate launch description."""

    # Declare arguments
    config_file_arg = DeclareLaunchArgument(
        'config_file',
        default_value='',
        description='Path to calibration config YAML file'
    )

    input_topic_arg = DeclareLaunchArgument(
        'input_topic',
        default_value='/joint_states_raw',
        description='Topic with raw joint states'
    )

    output_topic_arg = DeclareLaunchArgument(
        'output_topic',
        default_value='/joint_states',
        description='Topic for calibrated joint states'
    )

    status_rate_arg = DeclareLaunchArgument(
        'status_rate',
        default_value='1.0',
        description='Status publish rate in Hz (0 disables)'
    )

    # Calibration node
    calibration_node = Node(
        package='sensor_calibration',
        executable='calibration_node',
        name='sensor_calibration',
        output='screen',
        parameters=[{
            'config_file': LaunchConfiguration('config_file'),
            'input_topic': LaunchConfiguration('input_topic'),
            'output_topic': LaunchConfiguration('output_topic'),
            'status_rate': LaunchConfiguration('status_rate'),
        }],
    )

    return LaunchDescription([
        config_file_arg,
        input_topic_arg,
        output_topic_arg,
        status_rate_arg,
        calibration_node,
    ])
