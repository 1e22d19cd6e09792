"""
Calibration plugin.

Applies per-path piecewise-linear calibrations to the values of incoming
deltas. A delta has the shape

    {'updates': [{'$source': 'nmea0183.GP',
                  'values': [{'path': 'environment.wind.angleApparent',
                              'value': 0.52}]}]}

and is rewritten in place: the same objects are forwarded to the next stage.

The host is duck-typed and must provide:
    register_delta_input_handler(handler) -> unsubscribe callable
    save_plugin_options(options)
and may provide a `logger` used instead of this module's logger.
"""

import logging
from typing import Callable, Dict, List, Optional, Union

from sensor_calibration.calibration import ActiveCalibration, build_calibration
from sensor_calibration.config import CONFIG_SCHEMA, PluginConfig

logger = logging.getLogger(__name__)

DeltaHandler = Callable[[dict, Callable[[dict], None]], None]


def is_numeric(value) -> bool:
    """True for int/float sample values (bool excluded)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class CalibrationPlugin:
    """
    Calibrates incoming delta values with linear interpolation.

    One delta handler is registered per active calibration. The most recent
    conversion per path is kept for status reporting until stop().
    """

    id = 'calibration'
    name = 'Calibration'
    description = (
        'Plugin that uses linear interpolation to adjust incoming deltas '
        'in the server for calibrating inputs'
    )
    schema = CONFIG_SCHEMA

    def __init__(self, host):
        self._host = host
        self._log = getattr(host, 'logger', None) or logger
        self._unsubscribes: List[Callable[[], None]] = []
        self._calibrations: List[ActiveCalibration] = []
        self._last_conversions: Dict[str, dict] = {}
        self._config: Optional[PluginConfig] = None

    # -- Properties ----------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return bool(self._unsubscribes)

    @property
    def config(self) -> Optional[PluginConfig]:
        """Configuration the plugin was started with (sorted)."""
        return self._config

    @property
    def calibrations(self) -> List[ActiveCalibration]:
        return list(self._calibrations)

    @property
    def last_conversions(self) -> Dict[str, dict]:
        """Snapshot of the latest {'in', 'out'} conversion per path."""
        return {path: dict(c) for path, c in self._last_conversions.items()}

    # -- Lifecycle -----------------------------------------------------------

    def start(self, options: Union[PluginConfig, dict, None]):
        """Build every calibration and register its delta handler."""
        if self._unsubscribes or self._config is not None:
            self.stop()

        if isinstance(options, PluginConfig):
            config = options
        else:
            config = PluginConfig.from_dict(options)
        self._config = config

        for calibration_config in config.calibrations:
            calibration = build_calibration(calibration_config, self._log)
            if calibration is None:
                self._log.debug(
                    f"path:{calibration_config.path} has fewer than 2 mappings, ignored")
                continue
            self._calibrations.append(calibration)
            self._unsubscribes.append(
                self._host.register_delta_input_handler(self._make_handler(calibration)))

        # Always save on start so that the stored mappings are sorted
        self._save_options(config)

    def stop(self):
        """Deregister every handler and forget the last conversions."""
        unsubscribes, self._unsubscribes = self._unsubscribes, []
        for unsubscribe in unsubscribes:
            try:
                unsubscribe()
            except Exception as e:
                self._log.error(f"Failed to deregister delta handler: {e}")
        self._calibrations = []
        self._last_conversions = {}
        self._config = None

    def status_message(self) -> str:
        """One line: 'path: in => out' per calibrated path."""
        return ','.join(
            f"{path}: {c['in']} => {c['out']}"
            for path, c in self._last_conversions.items()
        )

    # -- Internal methods ----------------------------------------------------

    def _debug_enabled(self) -> bool:
        # ROS loggers filter by severity themselves
        is_enabled_for = getattr(self._log, 'isEnabledFor', None)
        return is_enabled_for(logging.DEBUG) if is_enabled_for else True

    def _save_options(self, config: PluginConfig):
        try:
            self._host.save_plugin_options(config.to_dict())
        except Exception as e:
            self._log.error(f"Failed to save plugin options: {e}")

    def _make_handler(self, calibration: ActiveCalibration) -> DeltaHandler:
        def handler(delta: dict, forward: Callable[[dict], None]):
            try:
                self._calibrate_delta(calibration, delta)
            finally:
                forward(delta)
        return handler

    def _calibrate_delta(self, calibration: ActiveCalibration, delta: dict):
        """Rewrite matching values of delta in place."""
        if not isinstance(delta, dict):
            return
        for update in delta.get('updates') or []:
            if not isinstance(update, dict):
                continue
            source = update.get('$source')
            for path_value in update.get('values') or []:
                if not isinstance(path_value, dict):
                    continue
                if not calibration.matches(path_value.get('path'), source):
                    continue
                value = path_value.get('value')
                if not is_numeric(value):
                    continue
                try:
                    number = float(value)
                except OverflowError:
                    self._log.warning(f"{calibration.path}({source}) value out of float range, passed through")
                    continue

                conversion = calibration.convert(number)
                self._last_conversions[calibration.path] = {
                    'in': value,
                    'out': conversion.value_out,
                }
                if self._debug_enabled():
                    self._log.debug(
                        f"{calibration.path}({source}) {value} => "
                        f"{conversion.value_out} ({conversion.calibrated})")
                path_value['value'] = conversion.value_out
