"""Protocol constants, enumerations and small value types of the streaming protocol."""

from __future__ import annotations

import abc
import enum
from dataclasses import dataclass, field
from typing import Any, ClassVar

# Transport header layout
SIGNAL_NUMBER_MASK = 0x000FFFFF
TYPE_MASK = 0x30000000
TYPE_SHIFT = 28
SIZE_MASK = 0x0FF00000
SIZE_SHIFT = 20

# Presentation layer: the only meta information encoding in use
METAINFORMATION_MSGPACK = 2

PARAMS = "params"
METHOD = "method"

# Stream related meta information
META_METHOD_APIVERSION = "apiVersion"
VERSION = "version"
META_METHOD_INIT = "init"
COMMANDINTERFACES = "commandInterfaces"

# Signal ids that became available / unavailable (changes only)
META_METHOD_AVAILABLE = "available"
META_METHOD_UNAVAILABLE = "unavailable"

# Signal related meta information
META_STREAMID = "streamId"
META_METHOD_SIGNAL = "signal"
META_SIGNALID = "signalId"
META_SIGNALIDS = "signalIds"

META_TABLEID = "tableId"
META_RELATEDSIGNALS = "relatedSignals"

META_METHOD_SUBSCRIBE = "subscribe"
META_METHOD_UNSUBSCRIBE = "unsubscribe"

META_DATATYPE = "dataType"
META_INTERPRETATION = "interpretation"

DATA_TYPE_INT8 = "int8"
DATA_TYPE_UINT8 = "uint8"
DATA_TYPE_INT16 = "int16"
DATA_TYPE_UINT16 = "uint16"
DATA_TYPE_INT32 = "int32"
DATA_TYPE_UINT32 = "uint32"
DATA_TYPE_INT64 = "int64"
DATA_TYPE_UINT64 = "uint64"
DATA_TYPE_REAL32 = "real32"
DATA_TYPE_REAL64 = "real64"
# Real part followed by imaginary part, each a 32-bit float
DATA_TYPE_COMPLEX32 = "complex32"
# Real part followed by imaginary part, each a 64-bit float
DATA_TYPE_COMPLEX64 = "complex64"

DATA_TYPE_ARRAY = "array"
DATA_TYPE_DYNAMIC_ARRAY = "dynamicArray"
DATA_TYPE_STRUCT = "struct"
DATA_TYPE_BITFIELD = "bitField"

META_COUNT = "count"
META_DEFINITION = "definition"
META_RULE = "rule"
META_RULETYPE_EXPLICIT = "explicit"
META_RULETYPE_LINEAR = "linear"
META_RULETYPE_CONSTANT = "constant"
META_NAME = "name"
META_TIME = "time"

META_RESOLUTION = "resolution"
META_NUMERATOR = "num"
META_DENOMINATOR = "denom"
META_ABSOLUTE_REFERENCE = "absoluteReference"

# ISO 8601 date: YYYY-MM-DD
UNIX_EPOCH = "1970-01-01"
# ISO 8601 UTC date time: YYYY-MM-DDThh:mm:ssZ
UNIX_EPOCH_DATE_UTC_TIME = "1970-01-01T00:00:00Z"

META_METHOD_ALIVE = "alive"
META_FILLLEVEL = "fillLevel"
META_START = "start"
META_DELTA = "delta"
META_UNIT = "unit"
META_DISPLAY_NAME = "displayName"
META_UNIT_ID = "unitId"
META_QUANTITY = "quantity"

OPENDAQ_LT_STREAM_VERSION = "0.7.0"


class TransportType(enum.IntEnum):
    """Kind of package on the transport layer."""

    SIGNALDATA = 1
    METAINFORMATION = 2


class SampleType(enum.IntEnum):
    """Type of a single sample of a signal."""

    UNKNOWN = 0
    U8 = 1
    S8 = 2
    U16 = 3
    S16 = 4
    U32 = 5
    S32 = 6
    U64 = 7
    S64 = 8
    REAL32 = 9
    REAL64 = 10
    BITFIELD32 = 11
    BITFIELD64 = 12
    COMPLEX32 = 13
    COMPLEX64 = 14
    ARRAY = 15
    STRUCT = 16


class RuleType(enum.IntEnum):
    """How the values of a signal are produced."""

    UNKNOWN = 0
    EXPLICIT = 1  # time rule of asynchronous signals
    CONSTANT = 2
    LINEAR = 3  # equidistant values of synchronous signals


_DATA_TYPES: dict[SampleType, str] = {
    SampleType.S8: DATA_TYPE_INT8,
    SampleType.U8: DATA_TYPE_UINT8,
    SampleType.S16: DATA_TYPE_INT16,
    SampleType.U16: DATA_TYPE_UINT16,
    SampleType.S32: DATA_TYPE_INT32,
    SampleType.U32: DATA_TYPE_UINT32,
    SampleType.S64: DATA_TYPE_INT64,
    SampleType.U64: DATA_TYPE_UINT64,
    SampleType.REAL32: DATA_TYPE_REAL32,
    SampleType.REAL64: DATA_TYPE_REAL64,
    SampleType.COMPLEX32: DATA_TYPE_COMPLEX32,
    SampleType.COMPLEX64: DATA_TYPE_COMPLEX64,
}

_SAMPLE_TYPES: dict[str, SampleType] = {name: st for st, name in _DATA_TYPES.items()}


def data_type_for_sample_type(sample_type: SampleType) -> str:
    """Return the meta information data type name of a scalar sample type."""
    try:
        return _DATA_TYPES[SampleType(sample_type)]
    except (KeyError, ValueError):
        raise ValueError(f"no scalar data type for sample type {sample_type!r}") from None


def sample_type_for_data_type(data_type: str) -> SampleType:
    """Return the sample type named by a meta information data type."""
    try:
        return _SAMPLE_TYPES[data_type]
    except KeyError:
        raise ValueError(f"unknown data type {data_type!r}") from None


def _unece_code(code: str) -> int:
    """Unit id of a UNECE unit code as used by OPC UA."""
    value = 0
    for char in code:
        value = (value << 8) | ord(char)
    return value


@dataclass
class Unit:
    """Physical unit of a signal."""

    UNIT_ID_USER: ClassVar[int] = 0
    UNIT_ID_NONE: ClassVar[int] = -1
    UNIT_ID_SECONDS: ClassVar[int] = _unece_code("SEC")
    UNIT_ID_MILLI_SECONDS: ClassVar[int] = _unece_code("C26")

    # -1 means no unit, 0 a user defined unit without unit id
    unit_id: int = -1
    display_name: str = ""
    quantity: str = ""


@dataclass
class Table:
    """A time signal and the data signals that share it."""

    # 0 means no time signal
    time_signal_number: int = 0
    data_signal_numbers: set[int] = field(default_factory=set)


class Writer(abc.ABC):
    """Destination for produced meta information and signal data.

    Implementations raise OSError when writing fails.
    """

    @abc.abstractmethod
    def write_meta_information(self, signal_number: int, data: Any) -> int:
        """Write meta information; signal number 0 is stream related, others signal related."""

    @abc.abstractmethod
    def write_signal_data(self, signal_number: int, data: bytes) -> int:
        """Write signal data; the signal number must be greater than 0."""

    @abc.abstractmethod
    def id(self) -> str:
        """Identifier of this writer."""