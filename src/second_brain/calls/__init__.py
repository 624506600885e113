"""Voice calls: client tokens, webhooks and call history."""
