"""
Inbound webhook pipeline for payment providers.

Modules:
    signatures: HMAC verification per provider
    status_maps: Provider status to canonical outcome
    resolvers: Payment lookup from webhook identifiers
    serializers: Required-field validation per provider
    views: The HTTP endpoint tying them together
"""
