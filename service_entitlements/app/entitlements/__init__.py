"""
Entitlement core.

- models: Entitlement record stored in the user's attribute bag.
- gate: The single access predicate for metered features.
- reconciler: Trial activation, first premium grant and periodic re-check.
"""
