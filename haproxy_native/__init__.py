"""Client for the HAProxy runtime API: socket commands and reply parsers."""

__version__ = "0.1.0"