"""hostdock: single-host deploy orchestrator for systemd-managed compose stacks."""

__version__ = "0.4.0"
