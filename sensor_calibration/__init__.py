# Sensor Calibration
"""
Piecewise-linear calibration of streamed sensor readings.

Provides:
- Calibration plugin rewriting delta values per signal path
- In-process delta bus host and offline replay CLI
- ROS2 node calibrating joint states
"""

from sensor_calibration.config import CalibrationConfig, Mapping, PluginConfig
from sensor_calibration.plugin import CalibrationPlugin
