"""Signal streaming protocol: constants, meta information decoding, producer signal bases and the HTTP control port."""

__version__ = "0.1.0"

__all__ = ["control", "control_server", "defines", "log", "meta_information", "signals"]