"""Phone verification, session tokens and authentication dependencies."""
