"""quotegate: resilient market-data gateway for the trading web app."""

__version__ = "0.1.0"
