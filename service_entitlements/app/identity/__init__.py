"""
Identity provider package.

Two implementations of one interface:
- supabase: access tokens checked against Supabase auth; attributes in app_metadata.
- claims: ID tokens verified against the issuer's JWKS; attributes in custom claims.
"""
