# daqstream

Building blocks for a measurement streaming protocol. Signals are sent as
binary sample data, each signal is described by msgpack-encoded meta
information, and subscriptions are requested through a small JSON-RPC
interface over HTTP.

## Installation

```
pip install daqstream
```

To run the test suite, install the `test` extra and run pytest from the
project directory:

```
pip install "daqstream[test]"
pytest
```

## Modules

### `daqstream.defines`

Protocol constants (meta information keys such as `METHOD`, `PARAMS`,
`META_SIGNALID`, data type names such as `DATA_TYPE_REAL64`, the transport
header masks) and small types:

- `TransportType`, `SampleType` and `RuleType` enumerations.
- `Unit`: unit id, display name and quantity of a signal, with the class
  constants `UNIT_ID_NONE`, `UNIT_ID_USER`, `UNIT_ID_SECONDS` and
  `UNIT_ID_MILLI_SECONDS`.
- `Table`: a time signal number and the set of data signal numbers sharing it.
- `Writer`: abstract interface with `write_meta_information()`,
  `write_signal_data()` and `id()`, through which producer signals write.
- `data_type_for_sample_type()` and `sample_type_for_data_type()` map between
  scalar sample types and their data type names; both raise `ValueError` for
  types that have no mapping.

### `daqstream.log`

`log_callback()` returns a callback taking `(level, message)` that logs to the
`openDaqStreaming` logger, which writes to standard output. The classes below
accept such a callback as `log_cb`.

### `daqstream.meta_information`

`MetaInformation.interpret(data)` decodes a meta information block: a
little-endian 32-bit type followed by the content. Only the msgpack type (2)
is decoded; blocks of other types are ignored. A block that is too short or
whose msgpack cannot be decoded raises `MetaInformationError`. Afterwards
`method()` returns the `"method"` entry (or `""`), `params()` the `"params"`
entry (or `None`), `json_content()` the whole document and `type()` the
block's type.

### `daqstream.signals`

- `BaseSignal`: abstract base of a producer signal, which owns a data signal
  number and a time signal number. `subscribe()` and `unsubscribe()` write the
  acknowledgements through the `Writer`; `set_epoch()` takes ISO 8601 text or a
  `datetime`; `set_unit()` sets unit id and display name. Static helpers
  convert between time ticks, nanoseconds and `datetime` values relative to
  the Unix epoch, and `next_signal_number()` hands out signal numbers, skipping
  0, which is reserved for stream related information.
- `BaseSynchronousSignal`: abstract base for signals with equidistant values.
  `set_time_start()` writes the value index and start time (two unsigned
  64-bit integers) on the time signal, `set_output_rate()` sets the tick delta,
  `write_signal_meta_information()` describes the data signal and its linear
  time signal, and `create_member()` builds the member definition for a data
  type. Subclasses provide `add_data()` and `member_information()`.

### `daqstream.control`

- `Controller(stream_id, address, port, target, http_version, log_cb)` builds
  JSON-RPC requests with `create_request()` and sends them with `subscribe()`
  and `unsubscribe()`, which return the response body, or `None` without
  sending anything when no signal ids are given.
- `HttpPost` sends one HTTP POST (`http_version` 10 for HTTP/1.0, 11 for
  HTTP/1.1) and returns the response body.
- Missing stream id, port or target, and resolve, connect, write or read
  failures, raise `ControlError`.

### `daqstream.control_server`

- `handle_request(method, body)` checks a control request (POST, a JSON object
  with `id`, a `method` of the form `<stream id>.<command>`, and `params` as an
  array of signal id strings) and returns a `ControlResponse` with status,
  content type and body: 400 with the reason for a bad request, otherwise 200
  with the JSON body `null`.
- `ControlServer(host="::", port=0)` serves `handle_request()` over HTTP in a
  background thread; use `start()`/`stop()` or a `with` block, and read the
  bound address from `server_address`.

## Example

```python
from daqstream.control import Controller
from daqstream.log import log_callback

controller = Controller("stream1", "localhost", "7438", "/", 11, log_callback())
request = controller.create_request(["signal_a", "signal_b"], "subscribe")
# {"jsonrpc": "2.0", "method": "stream1.subscribe",
#  "params": ["signal_a", "signal_b"], "id": ...}
```

## What it does not do

- There is no streaming transport: no websocket server or client, and no
  `Writer` implementation that frames data into transport packages.
- There is no consumer side that keeps track of subscribed signals and turns
  received data into values; `MetaInformation` only decodes single blocks.
- `BaseSignal` and `BaseSynchronousSignal` are abstract; no concrete signal
  classes for particular sample types are included.
- `ControlServer` validates subscribe and unsubscribe requests but does not
  act on them; a valid request is answered with `null`.
- There is no command-line program.