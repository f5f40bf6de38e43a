"""Write and validate BagIt archive manifests."""

__version__ = "0.1.0"
