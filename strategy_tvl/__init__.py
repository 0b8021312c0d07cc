"""Strategy wrapper TVL aggregator for Suilend obligations on SUI."""

__version__ = "0.1.0"
