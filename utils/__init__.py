"""REST clients and transform script helpers."""
