"""
Exception hierarchy for muon flux simulations.

Every error is fatal for a run: no retry, no partial result. The command
line driver is the only place where they are turned into an exit status.
"""


class MuonMCError(Exception):
    """Base exception for muon_mc errors."""
    pass


class ConfigError(MuonMCError):
    """Raised for an invalid run configuration or an unreadable dump file."""
    pass


class EngineError(MuonMCError):
    """Raised when the transport engine or the material tables fail."""
    pass


class LogicError(MuonMCError):
    """Raised when an unexpected transport event reaches the flux integrator."""

    def __init__(self, event):
        self.event = event
        super().__init__(f"unexpected transport event `{event!r}`")
