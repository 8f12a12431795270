"""pagosettle - block-anchored stablecoin payment requests and settlement monitoring."""

__version__ = "0.1.0"
