"""Gate engine and probes."""
