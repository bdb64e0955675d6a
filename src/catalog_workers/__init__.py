"""Pull-based task workers for the product chart and purchase catalogs."""

__version__ = "0.1.0"
