"""factory_ops: operations API for a metal-parts factory."""

__version__ = "0.1.0"
