"""User accounts identified by phone number."""
