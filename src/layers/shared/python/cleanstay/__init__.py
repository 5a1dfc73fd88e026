"""CleanStay shared library for Lambda functions."""

__version__ = "0.1.0"
