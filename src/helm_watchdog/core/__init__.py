"""Runtime context, clock and serialization helpers shared by commands."""
