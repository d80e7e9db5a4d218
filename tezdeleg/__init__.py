"""Use cases for a Tezos delegation service: queries, delegation sync, metrics and logging."""

__version__ = "0.1.0"