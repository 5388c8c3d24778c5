"""Shared test fixtures: graph builders and catalogs."""
