"""Chain access layer -- reserve query capability, block source, and web3 adapter."""

from reserve_sampler.chain.client import BlockSource, ReserveDataSource
from reserve_sampler.chain.parser import parse_reserves_data

__all__ = ["BlockSource", "ReserveDataSource", "parse_reserves_data"]
