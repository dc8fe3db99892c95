"""
Vehicle Deal Filter

A listing normalization and market-price engine for used-vehicle classified
ads. It deduplicates scraped listings, extracts vehicle attributes from free
text, keeps per-group market price statistics and flags listings priced well
below their market.
"""

__version__ = "0.1.0"
__author__ = "Vehicle Deal Filter Team"
