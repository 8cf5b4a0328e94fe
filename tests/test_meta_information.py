import logging
import struct

import msgpack
import pytest

from daqstream.defines import METAINFORMATION_MSGPACK, META_METHOD_SUBSCRIBE
from daqstream.meta_information import MetaInformation, MetaInformationError

SUBSCRIBE_DOC = {"method": "subscribe", "params": {"signalId": "DataSignal"}}


def package(doc, kind=METAINFORMATION_MSGPACK):
    return struct.pack("<I", kind) + msgpack.packb(doc)


def test_fresh_object_is_empty():
    meta = MetaInformation()
    assert meta.method() == ""
    assert meta.params() is None
    assert meta.json_content() is None
    assert meta.type() == 0


def test_interpret_subscribe_ack():
    meta = MetaInformation()
    meta.interpret(package(SUBSCRIBE_DOC))
    assert meta.type() == METAINFORMATION_MSGPACK
    assert meta.method() == META_METHOD_SUBSCRIBE
    assert meta.params() == SUBSCRIBE_DOC["params"]
    assert meta.json_content() == SUBSCRIBE_DOC


def test_missing_params_gives_none():
    meta = MetaInformation()
    meta.interpret(package({"method": "unsubscribe"}))
    assert meta.method() == "unsubscribe"
    assert meta.params() is None


def test_missing_method_gives_empty_string():
    meta = MetaInformation()
    meta.interpret(package({"params": {"signalId": "x"}}))
    assert meta.method() == ""
    assert meta.params() == {"signalId": "x"}


def test_unknown_type_is_ignored():
    meta = MetaInformation()
    meta.interpret(package(SUBSCRIBE_DOC, kind=7))
    assert meta.type() == 7
    assert meta.json_content() is None
    assert meta.method() == ""


def test_invalid_msgpack_raises_and_logs():
    records = []
    meta = MetaInformation(lambda level, msg: records.append((level, msg)))
    truncated = package(SUBSCRIBE_DOC)[:-1]
    with pytest.raises(MetaInformationError):
        meta.interpret(truncated)
    assert records and records[0][0] == logging.ERROR


def test_trailing_data_raises():
    meta = MetaInformation()
    with pytest.raises(MetaInformationError):
        meta.interpret(package(SUBSCRIBE_DOC) + msgpack.packb(1))


def test_too_short_raises():
    meta = MetaInformation()
    with pytest.raises(MetaInformationError):
        meta.interpret(b"\x02\x00")


def test_failed_parse_keeps_previous_content():
    meta = MetaInformation()
    meta.interpret(package(SUBSCRIBE_DOC))
    with pytest.raises(MetaInformationError):
        meta.interpret(struct.pack("<I", METAINFORMATION_MSGPACK) + b"\xc1")
    assert meta.json_content() == SUBSCRIBE_DOC


def test_non_string_method_raises():
    meta = MetaInformation()
    meta.interpret(package({"method": 5}))
    with pytest.raises(MetaInformationError):
        meta.method()