# src/merkledrop/runtime/state_invariants.py
from __future__ import annotations

"""Host state invariants / normalization helpers.

Host state is a nested JSON dict:

  {
    "params":  {"program_id": "<hex32>", ...},
    "records": {"<address hex>": {"owner": "<hex32>", "data": "<hex>"}},
    "token":   {... token ledger collaborator ...},
    "nonces":  {"<signer hex>": int},
    "height":  int,
    "tip":     "<last tx id>"
  }

This module only creates the top-level containers every operation relies on.
The token ledger owns the layout under "token".
"""

from collections.abc import MutableMapping
from typing import Any, Dict

from merkledrop.ledger.address import parse_address

Json = Dict[str, Any]


def ensure_state(st: Any) -> Json:
    """Ensure `st` is a dict and contains core keys.

    Raises:
        TypeError: if st or one of its core containers has the wrong type
    """
    if not isinstance(st, MutableMapping):
        raise TypeError(f"state must be MutableMapping, got {type(st)}")

    for key in ("params", "records", "token", "nonces"):
        v = st.get(key)
        if v is None:
            st[key] = {}
        elif not isinstance(v, dict):
            raise TypeError(f"state[{key!r}] must be dict, got {type(v)}")

    st.setdefault("height", 0)
    st.setdefault("tip", "")
    return st  # type: ignore[return-value]


def program_id_of(st: Json) -> bytes:
    """Return the program id the records in `st` are owned by."""
    raw = ensure_state(st)["params"].get("program_id")
    if not raw:
        raise ValueError("state params.program_id is not set")
    return parse_address(raw, field="program_id")


__all__ = ["ensure_state", "program_id_of"]
