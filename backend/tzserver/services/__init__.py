"""Services Layer — DataStore lifecycle and its construction from settings."""
