"""smartshard: time-balanced test sharding from previous run results."""

__version__ = "0.1.0"
