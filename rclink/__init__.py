"""UTRC/UTCC framed register-protocol links over TCP, UDP and serial transports."""

__version__ = "0.1.0"