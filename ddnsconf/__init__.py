"""Settings, domain names, domain expressions, durations and schedules for a dynamic DNS updater."""

__version__ = "1.0.0"