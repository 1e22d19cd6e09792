"""
Calibration builder and per-sample conversion.

Turns one CalibrationConfig into an ActiveCalibration: an immutable transfer
function plus the source filter and output formatting settings.
"""

import math
import operator
from dataclasses import dataclass
from decimal import Context, Decimal, ROUND_HALF_UP
from functools import partial
from typing import Callable, List, NamedTuple, Optional, Sequence, Tuple

from sensor_calibration.config import CalibrationConfig
from sensor_calibration.interpolation import LinearInterpolator

Point = Tuple[float, float]


class _UnwrapState(NamedTuple):
    """Accumulator of the unwrap fold."""
    previous_out: float
    sequence: Tuple[Point, ...]


def _unwrap_step(state: _UnwrapState, point: Point, period: float) -> _UnwrapState:
    value_in, value_out = point
    if value_out < state.previous_out:
        # Smallest whole number of periods that lifts out to previous_out
        turns = math.ceil((state.previous_out - value_out) / period)
        value_out += turns * period
    return _UnwrapState(value_out, state.sequence + ((value_in, value_out),))


def unwrap_mappings(points: Sequence[Point], period: Optional[float]) -> List[Point]:
    """
    Unwrap cyclic outputs into a non-decreasing sequence.

    Points must already be sorted by input. With period 360 the outputs
    350, 10, 30 become 350, 370, 390 so interpolation crosses the wrap
    boundary the short way. Without a period the points are returned as is.
    """
    if period is None:
        return list(points)
    state = _UnwrapState(previous_out=-math.inf, sequence=())
    for point in points:
        state = _unwrap_step(state, point, period)
    return list(state.sequence)


def rewrap(value: float, period: float) -> float:
    """Reduce an unwrapped value back into [0, period)."""
    wrapped = value % period
    # Tiny negative values can round up to exactly one period
    return 0.0 if wrapped >= period else wrapped


def round_half_up(value: float, decimals: int) -> float:
    """Round to a number of decimals, ties away from zero."""
    if not math.isfinite(value):
        return value
    quantum = Decimal(1).scaleb(-decimals)
    # Enough precision for any float's integer digits plus the decimals
    context = Context(prec=330 + decimals)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP, context=context))


def any_source(source: Optional[str]) -> bool:
    return True


class Conversion(NamedTuple):
    """Result of converting one sample."""
    value_in: float
    calibrated: float  # after re-wrapping, before rounding
    value_out: float


@dataclass(frozen=True)
class ActiveCalibration:
    """A built calibration, ready to convert samples for one path."""
    path: str
    convert_fn: LinearInterpolator
    source_filter: Callable[[Optional[str]], bool]
    period: Optional[float] = None
    decimals: Optional[int] = None
    source_ref: Optional[str] = None

    def matches(self, path: str, source: Optional[str]) -> bool:
        """True if a sample on path from source should be calibrated."""
        return path == self.path and self.source_filter(source)

    def convert(self, value: float) -> Conversion:
        """Interpolate, re-wrap (cyclic outputs) and round (if configured)."""
        result = self.convert_fn(value)
        if self.period is not None:
            result = rewrap(result, self.period)
        calibrated = result
        if self.decimals is not None:
            result = round_half_up(result, self.decimals)
        return Conversion(value, calibrated, result)


def build_calibration(config: CalibrationConfig, log=None) -> Optional[ActiveCalibration]:
    """
    Build the executable form of a calibration.

    Returns None for an inert calibration (fewer than two breakpoints).
    Breakpoints of config are sorted in place so the stored configuration can
    be written back in order.
    """
    if not config.is_active:
        return None

    config.sort_mappings()
    period = config.period_value
    decimals = config.decimals_value

    points = [(m.in_value, m.out_value) for m in config.mappings]
    unwrapped = unwrap_mappings(points, period)
    if log is not None:
        log.debug(
            f"path:{config.path} sourceRef:{config.source_ref} "
            f"decimals: {config.decimals}, period:{config.period}")
        for (value_in, raw_out), (_, value_out) in zip(points, unwrapped):
            log.debug(f"{value_in} => {value_out}({raw_out})")

    if config.source_ref is None:
        source_filter = any_source
    else:
        source_filter = partial(operator.eq, config.source_ref)

    return ActiveCalibration(
        path=config.path,
        convert_fn=LinearInterpolator(unwrapped),
        source_filter=source_filter,
        period=period,
        decimals=decimals,
        source_ref=config.source_ref,
    )
