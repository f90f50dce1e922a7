"""Data structures shared by the mapping modules."""
