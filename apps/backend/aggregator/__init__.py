"""Multi-engine video search aggregation."""
