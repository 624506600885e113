"""Conversation message persistence."""
