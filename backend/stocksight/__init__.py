"""StockSight: technical indicators and price predictions for the stock dashboard."""

__version__ = "0.1.0"
