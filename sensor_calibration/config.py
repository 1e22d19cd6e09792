"""
Configuration module for the sensor calibration plugin.

Defines dataclasses for calibration tables with YAML support, plus the
permissive numeric parsing used for the optional period/decimals settings.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

# Leading number of a string, e.g. "360deg" -> "360"
_NUMERIC_PREFIX = re.compile(r'^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')
_INTEGER_PREFIX = re.compile(r'^\s*[+-]?\d+')


def parse_optional_float(value: Any) -> Optional[float]:
    """
    Parse a setting leniently into a finite float.

    Returns None when the value is missing, unparsable or not finite, which
    disables the feature the setting controls.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        match = _NUMERIC_PREFIX.match(value)
        if not match:
            return None
        number = float(match.group(0))
    else:
        return None
    return number if math.isfinite(number) else None


def parse_optional_int(value: Any) -> Optional[int]:
    """Parse a setting leniently into an int, truncating toward zero."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        match = _INTEGER_PREFIX.match(value)
        return int(match.group(0)) if match else None
    return None


@dataclass
class Mapping:
    """One calibration breakpoint: raw input -> calibrated output."""
    in_value: float
    out_value: float

    def __post_init__(self):
        # bool is an int subclass but never a valid reading
        for name in ('in_value', 'out_value'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value!r}")

    def to_dict(self) -> dict:
        return {'in': self.in_value, 'out': self.out_value}

    @classmethod
    def from_dict(cls, data: dict) -> 'Mapping':
        return cls(in_value=data['in'], out_value=data['out'])


@dataclass
class CalibrationConfig:
    """
    Calibration of a single signal path.

    period and decimals keep whatever was configured; use period_value and
    decimals_value for the parsed settings (None means the feature is off).
    Mapping points that could not be parsed are kept as-is in
    unparsed_mappings so that saving never loses them.
    """
    path: str
    mappings: List[Mapping] = field(default_factory=list)
    source_ref: Optional[str] = None
    decimals: Any = None
    period: Any = None
    unparsed_mappings: List[Any] = field(default_factory=list)

    def __post_init__(self):
        if not isinstance(self.path, str) or not self.path:
            raise ValueError("path must be a non-empty string")
        # Convert dict mappings to Mapping objects
        self.mappings = [
            Mapping.from_dict(m) if isinstance(m, dict) else m
            for m in self.mappings
        ]

    @property
    def period_value(self) -> Optional[float]:
        """Modulus for cyclic outputs, or None for a non-cyclic signal."""
        period = parse_optional_float(self.period)
        if period is not None and period <= 0:
            return None
        return period

    @property
    def decimals_value(self) -> Optional[int]:
        """Rounding precision, or None when results are not rounded."""
        decimals = parse_optional_int(self.decimals)
        if decimals is not None and decimals < 0:
            return None
        return decimals

    @property
    def is_active(self) -> bool:
        """A calibration needs at least two breakpoints to do anything."""
        return len(self.mappings) > 1

    def sort_mappings(self):
        """Sort breakpoints ascending by input, in place."""
        self.mappings.sort(key=lambda m: m.in_value)

    def to_dict(self) -> dict:
        data: Dict[str, Any] = {'path': self.path}
        if self.source_ref is not None:
            data['sourceRef'] = self.source_ref
        if self.decimals is not None:
            data['decimals'] = self.decimals
        if self.period is not None:
            data['period'] = self.period
        data['mappings'] = [m.to_dict() for m in self.mappings] + list(self.unparsed_mappings)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'CalibrationConfig':
        """
        Build a calibration from its serialized form.

        Mapping points that cannot be parsed are left out of the calibration
        so one typo in a table does not take the whole calibration down.
        """
        mappings = []
        unparsed = []
        for point in data.get('mappings') or []:
            try:
                mappings.append(Mapping.from_dict(point))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping invalid mapping {point!r} for {data.get('path')}: {e}")
                unparsed.append(point)
        return cls(
            path=data.get('path'),
            mappings=mappings,
            source_ref=data.get('sourceRef'),
            decimals=data.get('decimals'),
            period=data.get('period'),
            unparsed_mappings=unparsed,
        )


@dataclass
class PluginConfig:
    """
    Main plugin configuration: every configured calibration.

    Entries that are not valid calibrations stay in unparsed_calibrations and
    are written back unchanged by to_dict().
    """
    calibrations: List[CalibrationConfig] = field(default_factory=list)
    unparsed_calibrations: List[Any] = field(default_factory=list)

    def __post_init__(self):
        # Convert dict calibrations to CalibrationConfig objects
        self.calibrations = [
            CalibrationConfig.from_dict(c) if isinstance(c, dict) else c
            for c in self.calibrations
        ]

    @property
    def paths(self) -> List[str]:
        """Get ordered list of calibrated paths."""
        return [c.path for c in self.calibrations]

    def to_dict(self) -> dict:
        return {
            'calibrations': [c.to_dict() for c in self.calibrations] + list(self.unparsed_calibrations),
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'PluginConfig':
        """Build a config from plugin options, skipping invalid calibrations."""
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"plugin options must be a mapping, got {type(data).__name__}")
        calibrations = []
        unparsed = []
        for entry in data.get('calibrations') or []:
            try:
                calibrations.append(CalibrationConfig.from_dict(entry))
            except (AttributeError, TypeError, ValueError) as e:
                logger.error(f"Skipping invalid calibration {entry!r}: {e}")
                unparsed.append(entry)
        return cls(calibrations=calibrations, unparsed_calibrations=unparsed)

    def to_yaml(self) -> str:
        """Serialize config to YAML string."""
        return yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    def save(self, path: Path):
        """Save config to YAML file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            f.write(self.to_yaml())

    @classmethod
    def from_yaml(cls, yaml_str: str) -> 'PluginConfig':
        """Load config from YAML string."""
        return cls.from_dict(yaml.safe_load(yaml_str))

    @classmethod
    def load(cls, path: Path) -> 'PluginConfig':
        """Load config from YAML file."""
        with open(path, 'r') as f:
            return cls.from_yaml(f.read())

    @classmethod
    def default_config_path(cls) -> Path:
        """Get default config path."""
        # Try package share directory first
        try:
            from ament_index_python.packages import get_package_share_directory
            return Path(get_package_share_directory('sensor_calibration')) / 'config' / 'calibration.yaml'
        except Exception:
            pass
        # Fallback to home directory
        return Path.home() / '.config' / 'sensor_calibration' / 'calibration.yaml'


# Schema of the plugin options, for external configuration tooling
CONFIG_SCHEMA = {
    'type': 'object',
    'properties': {
        'calibrations': {
            'type': 'array',
            'items': {
                'type': 'object',
                'required': ['path', 'mappings'],
                'properties': {
                    'path': {'type': 'string'},
                    'sourceRef': {'type': 'string'},
                    'decimals': {'type': 'number'},
                    'period': {'type': 'number'},
                    'mappings': {
                        'type': 'array',
                        'items': {
                            'type': 'object',
                            'properties': {
                                'in': {'type': 'number'},
                                'out': {'type': 'number'},
                            },
                        },
                    },
                },
            },
        },
    },
}
