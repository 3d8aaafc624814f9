"""
Entitlements Service package for the Checklist Access Layer.

This package decides whether a user may use metered checklist features
(AI suggestions, push notifications) and keeps their trial/premium state
in sync with the subscription authority. It provides:

- app.main: API surface for trial, premium, notification and AI endpoints.
- app.entitlements: Entitlement record, access gate and reconciler.
- app.subscriptions: Subscription authority client and verifier.
- app.identity: Identity providers (Supabase auth, ID token claims).
- app.ai: AI generation client, prompts and output sanitizer.
- app.notifications: Push notification client.

Guidelines:
- The service is stateless; entitlement state lives in the identity provider.
- Every metered feature goes through entitlements.gate.
"""
