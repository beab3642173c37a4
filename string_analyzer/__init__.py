"""Analyze, store and query lexical properties of strings."""
