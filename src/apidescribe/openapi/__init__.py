"""apidescribe.openapi - OpenAPI objects carrying synthesized descriptions."""

from apidescribe.openapi.security import (
    AuthorizationCode,
    ClientCredentials,
    HTTPAuthScheme,
    Implicit,
    Location,
    OAuth2Flow,
    OAuthFlowObject,
    OAuthFlowsObject,
    Password,
    SecuritySchemeObject,
    SecuritySchemeType,
)

__all__ = [
    "AuthorizationCode",
    "ClientCredentials",
    "HTTPAuthScheme",
    "Implicit",
    "Location",
    "OAuth2Flow",
    "OAuthFlowObject",
    "OAuthFlowsObject",
    "Password",
    "SecuritySchemeObject",
    "SecuritySchemeType",
]
