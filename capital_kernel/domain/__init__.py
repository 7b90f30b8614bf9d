"""Pure domain value objects for the capital kernel (zero I/O)."""
