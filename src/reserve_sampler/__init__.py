"""Lending reserve sampler: periodic on-chain reserve snapshots per block."""

__version__ = "0.1.0"
