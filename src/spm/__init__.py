"""sqlite-package-manager - the missing package manager for SQLite extensions."""

__version__ = "0.1.0"
