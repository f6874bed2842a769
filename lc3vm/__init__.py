"""An LC-3 processor and memory, with supervisor-mode and memory-protection variants."""

__version__ = "0.1.0"