"""PingPilot - scheduled uptime checks and alerting."""

__version__ = "1.0.0"
