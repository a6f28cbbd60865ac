"""
HMAC signature verification for provider webhooks.

Each provider signs the exact request body with a shared secret. The
header name and digest algorithm differ per provider, so both come from
SIGNATURE_SCHEMES rather than being hardcoded.

Verification fails closed: a missing secret, a missing header, an unknown
provider and a mismatching MAC are all rejected with WebhookSignatureError.

Usage:
    from payments.webhooks.signatures import WebhookSecrets, verify_signature

    verify_signature(
        PaymentMethod.CRYPTOMUS,
        request.body,
        request.headers,
        WebhookSecrets.from_settings(),
    )
"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from django.conf import settings

from payments.exceptions import UnsupportedProviderError, WebhookSignatureError
from payments.state_machines import PaymentMethod

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping


@dataclass(frozen=True)
class SignatureScheme:
    """
    How one provider signs its webhooks.

    Attributes:
        header: HTTP header carrying the hex MAC
        digestmod: hashlib constructor used for the HMAC
        secret_setting: Django setting holding the shared secret
    """

    header: str
    digestmod: Callable
    secret_setting: str


SIGNATURE_SCHEMES: Mapping[str, SignatureScheme] = MappingProxyType(
    {
        PaymentMethod.CRYPTOMUS: SignatureScheme(
            header="sign",
            digestmod=hashlib.md5,
            secret_setting="CRYPTOMUS_WEBHOOK_SECRET",
        ),
        PaymentMethod.WEEPAY: SignatureScheme(
            header="X-Weepay-Signature",
            digestmod=hashlib.sha256,
            secret_setting="WEEPAY_WEBHOOK_SECRET",
        ),
    }
)


def provider_from_slug(slug: str) -> PaymentMethod:
    """
    Map a URL slug ("cryptomus") to its provider.

    Raises:
        UnsupportedProviderError: No signature scheme for the slug
    """
    provider = (slug or "").strip().upper()
    if provider not in SIGNATURE_SCHEMES:
        raise UnsupportedProviderError(
            f"Unsupported payment provider: {slug}",
            details={"provider": slug},
        )
    return PaymentMethod(provider)


@dataclass(frozen=True)
class WebhookSecrets:
    """
    Per-provider shared secrets, built per request and passed in.

    Secrets are excluded from repr so they never reach logs or tracebacks.
    """

    secrets: Mapping[str, str] = field(default_factory=dict, repr=False)

    @classmethod
    def from_settings(cls) -> WebhookSecrets:
        return cls(
            {
                provider: getattr(settings, scheme.secret_setting, "") or ""
                for provider, scheme in SIGNATURE_SCHEMES.items()
            }
        )

    def for_provider(self, provider: str) -> str:
        return self.secrets.get(provider, "")


def compute_signature(provider: str, raw_body: bytes, secret: str) -> str:
    """Hex MAC of the raw body as the provider would compute it."""
    scheme = SIGNATURE_SCHEMES[provider]
    return hmac.new(secret.encode("utf-8"), raw_body, scheme.digestmod).hexdigest()


def verify_signature(
    provider: str,
    raw_body: bytes,
    headers: Mapping[str, str],
    secrets: WebhookSecrets,
) -> None:
    """
    Check the provider's MAC over the exact request body.

    Args:
        provider: PaymentMethod value
        raw_body: Request body bytes, before any parsing
        headers: Request headers (case-insensitive mapping such as request.headers)
        secrets: Injected per-provider secrets

    Raises:
        WebhookSignatureError: On any verification failure
    """
    scheme = SIGNATURE_SCHEMES.get(provider)
    if scheme is None:
        raise WebhookSignatureError(
            "No signature scheme for provider",
            details={"provider": provider},
        )

    secret = secrets.for_provider(provider)
    if not secret:
        raise WebhookSignatureError(
            "Webhook secret not configured",
            error_code="WEBHOOK_SECRET_MISSING",
            details={"provider": provider},
        )

    received = (headers.get(scheme.header) or "").strip()
    if not received:
        raise WebhookSignatureError(
            "Missing signature header",
            error_code="SIGNATURE_MISSING",
            details={"provider": provider, "header": scheme.header},
        )

    expected = compute_signature(provider, raw_body, secret)
    if not hmac.compare_digest(expected.encode("ascii"), received.lower().encode("utf-8")):
        raise WebhookSignatureError(
            "Invalid signature",
            details={"provider": provider},
        )
