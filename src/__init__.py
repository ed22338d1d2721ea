"""Commodity marketplace matching and ranking engine."""
