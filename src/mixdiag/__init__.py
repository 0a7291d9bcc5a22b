"""MixWarz development diagnostics: schema guard, catalog inspection and API probes."""

__version__ = "0.1.0"
