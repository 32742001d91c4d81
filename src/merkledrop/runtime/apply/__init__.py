# src/merkledrop/runtime/apply/__init__.py
"""Operation handlers.

emission: Initialize, TriggerInflation, Distribute and the administrator updates.
claims:   Claim and Burn.

NOTE: Keep this package import-safe (no imports of domain_dispatch).
"""

from __future__ import annotations

__all__ = [
    "common",
    "emission",
    "claims",
]
