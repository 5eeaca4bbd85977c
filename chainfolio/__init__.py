"""
Chainfolio - project registry, soulbound identity credentials and
cross-chain activity scoring.
"""

__version__ = "1.0.0"
