"""Environment preparation and CDK project bootstrap."""

__version__ = "0.1.0"
