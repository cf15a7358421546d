"""Browser journey tests for the Defra Digital Assurance frontend."""

__version__ = "0.1.0"
