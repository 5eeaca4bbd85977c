"""
Engine layer: computation that owns no ledger state.
"""
