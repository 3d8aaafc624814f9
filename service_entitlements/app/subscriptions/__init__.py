"""
Subscription authority integration.

The verifier reduces the authority's access-level windows to one
entitled/not-entitled decision. It never caches; throttling belongs to the
reconciler.
"""
