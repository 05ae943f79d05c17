"""End-to-end smoke tester for the GoPDFGenie conversion API."""

__version__ = "0.1.0"
