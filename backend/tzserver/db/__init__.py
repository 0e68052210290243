"""Database Layer — declarative base for the database definition source."""
