"""
Stable Kernel Layer

The two append-only ledgers and what they stand on:
- Record Store (dense, insertion-ordered, no update or delete)
- Project Registry (authority-gated writes)
- Credential Ledger (one soulbound credential per identity)
- Notification log (one event per successful mutation)

Architectural invariants:
- Every check precedes every state change; failed writes change nothing
- A mutation and its notification commit in the same transaction
- Each ledger serialises its writers with its own lock
"""
