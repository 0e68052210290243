"""Infrastructure Layer — loaders, codec, database sessions, logging."""
