"""Event planning backend: authentication core and HTTP surface."""

__version__ = "0.1.0"
