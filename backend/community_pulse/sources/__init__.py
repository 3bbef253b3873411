"""Fetchers for the external social graph."""
