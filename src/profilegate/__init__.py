"""profilegate — friend-request ledger and per-field profile visibility."""

__version__ = "0.1.0"
