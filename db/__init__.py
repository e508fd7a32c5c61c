"""Relational persistence for users and games."""
