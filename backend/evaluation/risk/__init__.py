"""Risk-discovery adapter: prompts, JSON guard, mock generator and model client."""
