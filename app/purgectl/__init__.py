"""purgectl - Scheduled, scoped, auditable bulk deletion for shared file systems."""

__version__ = "0.1.0"
