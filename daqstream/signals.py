"""Producer side signals that describe themselves and write their data."""

from __future__ import annotations

import abc
import logging
import struct
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, ClassVar

from daqstream.defines import (
    DATA_TYPE_UINT64,
    META_ABSOLUTE_REFERENCE,
    META_DATATYPE,
    META_DEFINITION,
    META_DELTA,
    META_DENOMINATOR,
    META_DISPLAY_NAME,
    META_INTERPRETATION,
    META_METHOD_SIGNAL,
    META_METHOD_SUBSCRIBE,
    META_METHOD_UNSUBSCRIBE,
    META_NAME,
    META_NUMERATOR,
    META_QUANTITY,
    META_RESOLUTION,
    META_RULE,
    META_RULETYPE_EXPLICIT,
    META_RULETYPE_LINEAR,
    META_SIGNALID,
    META_TABLEID,
    META_TIME,
    META_UNIT,
    META_UNIT_ID,
    METHOD,
    PARAMS,
    SIGNAL_NUMBER_MASK,
    RuleType,
    Unit,
    Writer,
)
from daqstream.log import LogCallback

_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_NS_PER_SECOND = 1_000_000_000
_START_VALUE = struct.Struct("<QQ")


def _ignore(level: int, message: str) -> None:
    pass


def _as_utc(time: datetime) -> datetime:
    if time.tzinfo is None:
        return time.replace(tzinfo=timezone.utc)
    return time.astimezone(timezone.utc)


class BaseSignal(abc.ABC):
    """A data signal together with its artificial time signal."""

    _signal_number_counter: ClassVar[int] = 0
    _signal_number_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(
        self,
        signal_id: str,
        time_ticks_per_second: int,
        writer: Writer,
        log_cb: LogCallback | None,
    ) -> None:
        self.data_signal_number = self.next_signal_number()
        self.time_signal_number = self.next_signal_number()
        self.signal_id = signal_id
        self.member_name = "value"
        self.time_ticks_per_second = time_ticks_per_second
        self.data_interpretation_object: Any = None
        self.time_interpretation_object: Any = None
        self._unit_id = Unit.UNIT_ID_NONE
        self._unit_display_name = ""
        self._epoch = ""
        self._writer = writer
        self._log = log_cb or _ignore

    @property
    def number(self) -> int:
        """Signal number of the data signal."""
        return self.data_signal_number

    @property
    def epoch(self) -> str:
        return self._epoch

    @property
    def unit_id(self) -> int:
        return self._unit_id

    @property
    def unit_display_name(self) -> str:
        return self._unit_display_name

    def subscribe(self) -> None:
        """Acknowledge the subscription of data and time signal and describe both."""
        self._writer.write_meta_information(
            self.data_signal_number,
            {METHOD: META_METHOD_SUBSCRIBE, PARAMS: {META_SIGNALID: self.signal_id}},
        )
        self._writer.write_meta_information(
            self.time_signal_number,
            {METHOD: META_METHOD_SUBSCRIBE, PARAMS: {META_SIGNALID: self.signal_id + "_time"}},
        )
        self.write_signal_meta_information()

    def unsubscribe(self) -> None:
        """Acknowledge that data and time signal got unsubscribed."""
        self._writer.write_meta_information(
            self.data_signal_number, {METHOD: META_METHOD_UNSUBSCRIBE}
        )
        self._writer.write_meta_information(
            self.time_signal_number, {METHOD: META_METHOD_UNSUBSCRIBE}
        )

    def set_epoch(self, epoch: str | datetime) -> None:
        """Set the absolute time reference, as ISO 8601 text or as a point in time."""
        if isinstance(epoch, datetime):
            epoch = _as_utc(epoch).strftime("%Y-%m-%dT%H:%M:%SZ")
        self._epoch = epoch

    def set_unit(self, unit_id: int, display_name: str) -> None:
        self._unit_id = unit_id
        self._unit_display_name = display_name

    @abc.abstractmethod
    def write_signal_meta_information(self) -> None:
        """Describe the signal; written once after it got subscribed."""

    @abc.abstractmethod
    def time_rule(self) -> RuleType:
        """Rule by which the time stamps of the signal are produced."""

    @staticmethod
    def time_ticks_from_nanoseconds(ns: int, time_ticks_per_second: int) -> int:
        return int(time_ticks_per_second * (ns / _NS_PER_SECOND))

    @staticmethod
    def nanoseconds_from_time_ticks(time_ticks: int, time_ticks_per_second: int) -> int:
        seconds, sub_ticks = divmod(time_ticks, time_ticks_per_second)
        return seconds * _NS_PER_SECOND + sub_ticks * _NS_PER_SECOND // time_ticks_per_second

    @staticmethod
    def time_ticks_from_time(time: datetime, time_ticks_per_second: int) -> int:
        """Ticks since the unix epoch; naive times are taken as UTC."""
        seconds = (_as_utc(time) - _UNIX_EPOCH).total_seconds()
        return int(seconds * time_ticks_per_second)

    @staticmethod
    def time_from_time_ticks(time_ticks: int, time_ticks_per_second: int) -> datetime:
        """Point in time of ticks since the unix epoch, at microsecond resolution."""
        ns = BaseSignal.nanoseconds_from_time_ticks(time_ticks, time_ticks_per_second)
        return _UNIX_EPOCH + timedelta(microseconds=ns // 1000)

    @staticmethod
    def next_signal_number() -> int:
        """Next free signal number; 0 is reserved for stream related information."""
        with BaseSignal._signal_number_lock:
            BaseSignal._signal_number_counter += 1
            if BaseSignal._signal_number_counter & SIGNAL_NUMBER_MASK == 0:
                BaseSignal._signal_number_counter += 1
            return BaseSignal._signal_number_counter & SIGNAL_NUMBER_MASK


class BaseSynchronousSignal(BaseSignal):
    """Signal whose values are equidistant in time."""

    def __init__(
        self,
        signal_id: str,
        output_rate: int,
        time_ticks_per_second: int,
        writer: Writer,
        log_cb: LogCallback | None,
    ) -> None:
        super().__init__(signal_id, time_ticks_per_second, writer, log_cb)
        self._output_rate_in_ticks = output_rate
        self._start_in_ticks = 0
        self.value_index = 0

    @abc.abstractmethod
    def add_data(self, data: Any, sample_count: int) -> int:
        """Write sample_count values of data."""

    @abc.abstractmethod
    def member_information(self) -> dict[str, Any]:
        """Definition of the data member of this signal."""

    def time_rule(self) -> RuleType:
        return RuleType.LINEAR

    @property
    def time_delta(self) -> int:
        return self._output_rate_in_ticks

    @property
    def time_start(self) -> int:
        return self._start_in_ticks

    def set_time_start(self, time_ticks: int) -> None:
        """Send the time stamp of the next value, preceded by its value index."""
        self._start_in_ticks = time_ticks
        payload = _START_VALUE.pack(self.value_index, time_ticks)
        result = self._writer.write_signal_data(self.time_signal_number, payload)
        if result is not None and result < 0:
            self._log(logging.ERROR, f"{self.data_signal_number}: Could not write signal time!")

    def set_output_rate(self, time_ticks: int) -> None:
        """Set the time between two values."""
        self._output_rate_in_ticks = time_ticks

    def write_signal_meta_information(self) -> None:
        data_params: dict[str, Any] = {
            META_TABLEID: self.signal_id,
            META_DEFINITION: self.member_information(),
        }
        if self.data_interpretation_object is not None:
            data_params[META_INTERPRETATION] = self.data_interpretation_object
        self._writer.write_meta_information(
            self.data_signal_number, {METHOD: META_METHOD_SIGNAL, PARAMS: data_params}
        )

        definition = {
            META_NAME: META_TIME,
            META_RULE: META_RULETYPE_LINEAR,
            META_RULETYPE_LINEAR: {META_DELTA: self._output_rate_in_ticks},
            META_DATATYPE: DATA_TYPE_UINT64,
            META_UNIT: {
                META_UNIT_ID: Unit.UNIT_ID_SECONDS,
                META_DISPLAY_NAME: "s",
                META_QUANTITY: META_TIME,
            },
            META_ABSOLUTE_REFERENCE: self._epoch,
            META_RESOLUTION: {
                META_NUMERATOR: 1,
                META_DENOMINATOR: self.time_ticks_per_second,
            },
        }
        time_params: dict[str, Any] = {META_TABLEID: self.signal_id, META_DEFINITION: definition}
        if self.time_interpretation_object is not None:
            time_params[META_INTERPRETATION] = self.time_interpretation_object
        self._writer.write_meta_information(
            self.time_signal_number, {METHOD: META_METHOD_SIGNAL, PARAMS: time_params}
        )

    def create_member(self, data_type: str) -> dict[str, Any]:
        """Member definition of an explicit data signal of the given data type."""
        member: dict[str, Any] = {
            META_NAME: self.member_name,
            META_DATATYPE: data_type,
            META_RULE: META_RULETYPE_EXPLICIT,
        }
        if self._unit_id != Unit.UNIT_ID_NONE:
            member[META_UNIT] = {
                META_UNIT_ID: self._unit_id,
                META_DISPLAY_NAME: self._unit_display_name,
            }
        return member