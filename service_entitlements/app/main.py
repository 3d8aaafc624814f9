"""
Entitlements service for the Checklist Access Layer.
"""

import time
from typing import Callable, Dict, Optional

from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.errors import NotEntitledError
from shared.logging import set_user_context, set_feature_context

from .ai.client import AIClient
from .entitlements.gate import require_entitlement
from .entitlements.models import AuthenticatedUser
from .entitlements.reconciler import EntitlementReconciler
from .identity.base import IdentityProvider
from .identity.claims import ClaimsIdentityProvider
from .identity.jwks import JWKSClient
from .identity.supabase import SupabaseIdentityProvider
from .notifications.onesignal_client import OneSignalClient
from .schemas import AccessTokenRequest, NotifyRequest, SuggestionsRequest, ParseRequest
from .subscriptions.adapty_client import AdaptyClient
from .subscriptions.verifier import SubscriptionAuthority, SubscriptionVerifier

AI_DENIED_MESSAGE = "User has no permissions for AI suggestions"


def _now_millis() -> int:
    return int(time.time() * 1000)


class EntitlementsService(BaseService):
    """Entitlements service implementation.

    Every outbound collaborator can be injected; anything not given is built
    from configuration.
    """

    def __init__(self,
                 config: Optional[ServiceConfig] = None,
                 identity_provider: Optional[IdentityProvider] = None,
                 ai_identity_provider: Optional[IdentityProvider] = None,
                 subscription_authority: Optional[SubscriptionAuthority] = None,
                 ai_client: Optional[AIClient] = None,
                 notifier: Optional[OneSignalClient] = None,
                 clock: Optional[Callable[[], int]] = None):
        super().__init__("entitlements", 3000, config)
        timeout = self.config.outbound_timeout_seconds

        self.clock = clock or _now_millis
        self.identity_provider = identity_provider or SupabaseIdentityProvider(
            self.config.supabase_url,
            self.config.supabase_service_role_key,
            timeout=timeout
        )
        self.ai_identity_provider = ai_identity_provider or self._build_ai_identity_provider()
        self.verifier = SubscriptionVerifier(
            subscription_authority or AdaptyClient(
                self.config.adapty_api_key,
                self.config.adapty_api_base_url,
                timeout=timeout
            ),
            skip_emails=self.config.skip_email_list,
            metrics=self.metrics
        )
        self.reconciler = EntitlementReconciler(self.identity_provider, self.verifier, metrics=self.metrics)
        self.ai_client = ai_client or AIClient(
            api_key=self.config.openrouter_api_key,
            model=self.config.or_model_name,
            base_url=self.config.openrouter_base_url,
            site_url=self.config.site_url,
            site_name=self.config.site_name,
            timeout=max(timeout, 30.0)
        )
        self.notifier = notifier or OneSignalClient(
            app_id=self.config.os_app_id,
            api_key=self.config.os_api_key,
            base_url=self.config.os_api_base_url,
            android_channel_id=self.config.os_android_channel_id,
            android_package_name=self.config.android_package_name,
            timeout=timeout
        )

        self._setup_entitlements_routes()

    def _build_ai_identity_provider(self) -> IdentityProvider:
        if self.config.ai_identity_provider == "supabase":
            return self.identity_provider
        return ClaimsIdentityProvider(
            self.config.firebase_project_id,
            JWKSClient(self.config.firebase_jwks_url, timeout=self.config.outbound_timeout_seconds)
        )

    async def _authenticate(self, provider: IdentityProvider, credential: str,
                            credential_kind: str = "access_token") -> AuthenticatedUser:
        user = await provider.authenticate(credential)
        set_user_context(user.user_id, credential_kind)
        return user

    def _gate(self, user: AuthenticatedUser, feature: str, message: str = "User has no permissions."):
        set_feature_context(feature)
        now = self.clock()
        try:
            require_entitlement(user.entitlement, now, feature, message)
        except NotEntitledError:
            self.metrics.increment_counter("entitlement_checks_total", feature=feature, decision="deny")
            raise
        self.metrics.increment_counter("entitlement_checks_total", feature=feature, decision="allow")

    def _business_event(self, event_type: str, **kwargs):
        self.metrics.record_business_event(event_type)
        self.logger.info("Business event", event_type=event_type, **kwargs)

    def _setup_entitlements_routes(self):
        """Set up entitlements-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "entitlements",
                "message": "Checklist Access Layer - Entitlements Service",
                "version": "1.0.0",
                "capabilities": ["trial", "premium", "notifications", "ai"]
            }

        @self.app.post("/trial")
        async def activate_trial(request: AccessTokenRequest):
            """Start the 7-day trial for the caller."""
            user = await self._authenticate(self.identity_provider, request.access_token)
            trial_expire_date = await self.reconciler.activate_trial(user, self.clock())
            self._business_event("trial_activated", user_id=user.user_id)
            return {"success": True, "trialExpireDate": trial_expire_date}

        @self.app.post("/premium")
        async def set_premium(request: AccessTokenRequest):
            """Grant premium if the subscription authority confirms it."""
            user = await self._authenticate(self.identity_provider, request.access_token)
            has_premium = await self.reconciler.set_premium_if_eligible(user, self.clock())
            if has_premium:
                self._business_event("premium_granted", user_id=user.user_id)
            return {"success": True, "hasPremium": has_premium}

        @self.app.put("/premium")
        async def refresh_premium(request: AccessTokenRequest):
            """Re-check an existing premium grant, at most once per 24h."""
            user = await self._authenticate(self.identity_provider, request.access_token)
            outcome = await self.reconciler.refresh_premium(user, self.clock())
            if outcome.updated:
                self._business_event("premium_refreshed", user_id=user.user_id, has_premium=outcome.has_premium)
            else:
                self._business_event("refresh_skipped", user_id=user.user_id, reason=outcome.reason)
            return outcome.to_response()

        @self.app.post("/notify")
        async def notify(request: NotifyRequest):
            """Push a checklist update to other users."""
            user = await self._authenticate(self.identity_provider, request.access_token)
            self._gate(user, "notifications")

            with self.metrics.time_operation("downstream_request_duration_seconds", provider="onesignal"):
                status_code, body = await self.notifier.send(
                    request.user_uids,
                    request.content.titles,
                    request.content.messages,
                    request.checklist_id
                )
            self._business_event(
                "notification_dispatched",
                user_id=user.user_id,
                recipients=len(request.user_uids),
                provider_status=status_code
            )
            return JSONResponse(status_code=status_code, content=body)

        @self.app.post("/ai/suggestions")
        async def ai_suggestions(request: SuggestionsRequest):
            """Suggest additional checklist items."""
            user = await self._authenticate(self.ai_identity_provider, request.id_token, "id_token")
            self._gate(user, "ai_suggestions", AI_DENIED_MESSAGE)

            with self.metrics.time_operation("downstream_request_duration_seconds", provider="openrouter"):
                suggestions = await self.ai_client.suggest_items(user.user_id, request.title, request.items)
            self._business_event("ai_generation_completed", user_id=user.user_id, kind="suggestions")
            return {"success": True, "suggestions": suggestions}

        @self.app.post("/ai/parse")
        async def ai_parse(request: ParseRequest):
            """Turn dictated text into a checklist title and items."""
            user = await self._authenticate(self.ai_identity_provider, request.id_token, "id_token")
            self._gate(user, "ai_parse", AI_DENIED_MESSAGE)

            with self.metrics.time_operation("downstream_request_duration_seconds", provider="openrouter"):
                suggestions = await self.ai_client.parse_checklist(user.user_id, request.prompt)
            self._business_event("ai_generation_completed", user_id=user.user_id, kind="parse")
            return {"success": True, "suggestions": suggestions}

    async def _check_dependencies(self) -> Dict[str, str]:
        """Report which providers are configured."""
        return {
            "supabase": "configured" if self.config.supabase_service_role_key else "missing_key",
            "adapty": "configured" if self.config.adapty_api_key else "missing_key",
            "openrouter": "configured" if self.config.openrouter_api_key else "missing_key",
            "onesignal": "configured" if self.config.os_api_key else "missing_key",
        }


def create_app():
    """Create entitlements service application."""
    service = EntitlementsService()
    return service.app


def main():
    """Run the entitlements service."""
    EntitlementsService().run()


if __name__ == "__main__":
    main()
