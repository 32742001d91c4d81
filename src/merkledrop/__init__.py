"""Token emission and cumulative Merkle-claim ledger."""

__version__ = "0.1.0"
