"""rsnap: incremental snapshot backups with retention pruning."""

__version__ = "0.1.0"
