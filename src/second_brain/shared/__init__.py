"""
Shared infrastructure: configuration-aware database, logging, errors.
"""
