"""Telephony provider integration (Twilio Verify and Twilio Voice)."""
