"""Cookie Keeper: allow-list driven cookie retention engine."""

__version__ = "1.0.0"
