"""STX Offset - Batch timing offset patcher for STX step files."""

__version__ = "0.1.0"
