"""Boot time report: bootloader bootstage records + kernel log -> one timeline."""

__version__ = "1.0.0"
