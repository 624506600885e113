"""Second Brain API: phone-verified assistant backend."""

__version__ = "1.0.0"
