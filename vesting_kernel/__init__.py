"""
Vesting Kernel - time-locked linear-vesting ledger

A per-account lock ledger with:
- Half of every deposit vested immediately, the rest released daily
- One live lock per account
- Claim-once withdrawal windows (write-then-transfer, atomic)
- Injected clock, store and custody collaborators
"""

__version__ = "0.1.0"
