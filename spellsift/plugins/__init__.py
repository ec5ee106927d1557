"""Built-in corpus sources."""
