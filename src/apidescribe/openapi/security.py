"""OpenAPI security scheme objects.

Field documentation below is picked up by auto_describe, so every model
carries its own `openapi_description`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, GetCoreSchemaHandler
from pydantic_core import core_schema

from apidescribe.descriptable import OpenAPIDescriptable, auto_describe

BASIC_DESCRIPTION = (
    "[Basic authentication](https://en.wikipedia.org/wiki/Basic_access_authentication) "
    "is a simple authentication scheme built into the HTTP protocol. The client sends "
    "HTTP requests with the Authorization header that contains the word Basic word "
    "followed by a space and a base64-encoded string username:password. For example, "
    "to authorize as demo / p@55w0rd the client would send"
)
API_KEY_DESCRIPTION = "An API key is a token that a client provides when making API calls"
BEARER_DESCRIPTION = (
    "Bearer authentication (also called token authentication) is an HTTP authentication "
    "scheme that involves security tokens called bearer tokens. The name \"Bearer "
    "authentication\" can be understood as \"give access to the bearer of this token.\" "
    "The bearer token is a cryptic string, usually generated by the server in response "
    "to a login request. The client must send this token in the Authorization header "
    "when making requests to protected resources"
)
OAUTH2_DESCRIPTION = (
    "OAuth 2.0 is an authorization protocol that gives an API client limited access to "
    "user data on a web server. GitHub, Google, and Facebook APIs notably use it. OAuth "
    "relies on authentication scenarios called flows, which allow the resource owner "
    "(user) to share the protected content from the resource server without sharing "
    "their credentials. For that purpose, an OAuth 2.0 server issues access tokens that "
    "the client applications can use to access protected resources on behalf of the "
    "resource owner. For more information about OAuth 2.0, see oauth.net and RFC 6749."
)
OPEN_ID_CONNECT_DESCRIPTION = (
    "OpenID Connect (OIDC) is an identity layer built on top of the OAuth 2.0 protocol "
    "and supported by some OAuth 2.0 providers, such as Google and Azure Active "
    "Directory. It defines a sign-in flow that enables a client application to "
    "authenticate a user, and to obtain information (or claims) about that user, such "
    "as the user name, email, and so on. User identity information is encoded in a "
    "secure JSON Web Token (JWT), called ID token."
)


class SecuritySchemeType(str, Enum):
    API_KEY = "apiKey"
    HTTP = "http"
    MUTUAL_TLS = "mutualTLS"
    OAUTH2 = "oauth2"
    OPEN_ID_CONNECT = "openIdConnect"


class Location(str, Enum):
    """Where an API key is sent."""

    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"


class HTTPAuthScheme(str):
    """HTTP Authorization scheme name, always lower case (RFC 7235)."""

    BASIC: ClassVar[HTTPAuthScheme]
    BEARER: ClassVar[HTTPAuthScheme]
    DIGEST: ClassVar[HTTPAuthScheme]
    #: Usable with HTTP servers or proxies. In response to a 407 Proxy
    #: Authentication Required, the proxy authentication header fields are used.
    HOBA: ClassVar[HTTPAuthScheme]
    MUTUAL: ClassVar[HTTPAuthScheme]
    OAUTH: ClassVar[HTTPAuthScheme]
    SCRAM_SHA_1: ClassVar[HTTPAuthScheme]
    SCRAM_SHA_256: ClassVar[HTTPAuthScheme]
    VAPID: ClassVar[HTTPAuthScheme]

    def __new__(cls, value: str) -> HTTPAuthScheme:
        return super().__new__(cls, str(value).lower())

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_after_validator_function(
            cls,
            core_schema.str_schema(),
            serialization=core_schema.to_string_ser_schema(),
        )


HTTPAuthScheme.BASIC = HTTPAuthScheme("basic")
HTTPAuthScheme.BEARER = HTTPAuthScheme("bearer")
HTTPAuthScheme.DIGEST = HTTPAuthScheme("digest")
HTTPAuthScheme.HOBA = HTTPAuthScheme("hoba")
HTTPAuthScheme.MUTUAL = HTTPAuthScheme("mutual")
HTTPAuthScheme.OAUTH = HTTPAuthScheme("oauth")
HTTPAuthScheme.SCRAM_SHA_1 = HTTPAuthScheme("scram-sha-1")
HTTPAuthScheme.SCRAM_SHA_256 = HTTPAuthScheme("scram-sha-256")
HTTPAuthScheme.VAPID = HTTPAuthScheme("vapid")


class _SpecificationObject(BaseModel, OpenAPIDescriptable):
    # Keeps `x-` extension keys
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_openapi(self) -> dict[str, Any]:
        """Serialize with OpenAPI field names, omitting unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


@auto_describe
class OAuthFlowObject(_SpecificationObject):
    """Configuration details for a supported OAuth Flow."""

    #: The authorization URL to be used for this flow.
    authorization_url: str | None = Field(default=None, alias="authorizationUrl")

    #: The token URL to be used for this flow.
    token_url: str | None = Field(default=None, alias="tokenUrl")

    #: The URL to be used for obtaining refresh tokens.
    refresh_url: str | None = Field(default=None, alias="refreshUrl")

    #: The available scopes for the OAuth2 security scheme. A map between the
    #: scope name and a short description for it.
    scopes: dict[str, str] = Field(default_factory=dict)


@auto_describe(nested=True, root_comment="merge")
class OAuthFlowsObject(_SpecificationObject):
    """Allows configuration of the supported OAuth Flows."""

    #: Configuration for the OAuth Implicit flow.
    implicit: OAuthFlowObject | None = None

    #: Configuration for the OAuth Resource Owner Password flow.
    password: OAuthFlowObject | None = None

    #: Configuration for the OAuth Client Credentials flow. Previously called
    #: application in OpenAPI 2.0.
    client_credentials: OAuthFlowObject | None = Field(
        default=None, alias="clientCredentials"
    )

    #: Configuration for the OAuth Authorization Code flow. Previously called
    #: accessCode in OpenAPI 2.0.
    authorization_code: OAuthFlowObject | None = Field(
        default=None, alias="authorizationCode"
    )


@dataclass(frozen=True)
class Implicit:
    authorization_url: str

    def flow(
        self, refresh_url: str | None = None, scopes: dict[str, str] | None = None
    ) -> OAuthFlowsObject:
        return OAuthFlowsObject(
            implicit=OAuthFlowObject(
                authorization_url=self.authorization_url,
                refresh_url=refresh_url,
                scopes=scopes or {},
            )
        )


@dataclass(frozen=True)
class Password:
    token_url: str

    def flow(
        self, refresh_url: str | None = None, scopes: dict[str, str] | None = None
    ) -> OAuthFlowsObject:
        return OAuthFlowsObject(
            password=OAuthFlowObject(
                token_url=self.token_url, refresh_url=refresh_url, scopes=scopes or {}
            )
        )


@dataclass(frozen=True)
class ClientCredentials:
    token_url: str

    def flow(
        self, refresh_url: str | None = None, scopes: dict[str, str] | None = None
    ) -> OAuthFlowsObject:
        return OAuthFlowsObject(
            client_credentials=OAuthFlowObject(
                token_url=self.token_url, refresh_url=refresh_url, scopes=scopes or {}
            )
        )


@dataclass(frozen=True)
class AuthorizationCode:
    authorization_url: str
    token_url: str

    def flow(
        self, refresh_url: str | None = None, scopes: dict[str, str] | None = None
    ) -> OAuthFlowsObject:
        return OAuthFlowsObject(
            authorization_code=OAuthFlowObject(
                authorization_url=self.authorization_url,
                token_url=self.token_url,
                refresh_url=refresh_url,
                scopes=scopes or {},
            )
        )


OAuth2Flow = Implicit | Password | ClientCredentials | AuthorizationCode


@auto_describe(nested=True, root_comment="merge")
class SecuritySchemeObject(_SpecificationObject):
    """Defines a security scheme that can be used by the operations.

    Supported schemes are HTTP authentication, an API key, mutual TLS, OAuth2's
    common flows and OpenID Connect Discovery.
    """

    #: The type of the security scheme.
    type: SecuritySchemeType

    #: A description for security scheme. CommonMark syntax MAY be used for
    #: rich text representation.
    description: str | None = None

    #: The name of the header, query or cookie parameter to be used.
    name: str | None = None

    #: The location of the API key.
    in_: Location | None = Field(default=None, alias="in")

    #: The name of the HTTP Authorization scheme to be used in the
    #: Authorization header as defined in RFC7235.
    scheme: HTTPAuthScheme | None = None

    #: A hint to the client to identify how the bearer token is formatted.
    bearer_format: str | None = Field(default=None, alias="bearerFormat")

    #: An object containing configuration information for the flow types
    #: supported.
    flows: OAuthFlowsObject | None = None

    #: OpenId Connect URL to discover OAuth2 configuration values.
    open_id_connect_url: str | None = Field(default=None, alias="openIdConnectUrl")

    def described(self, description: str) -> SecuritySchemeObject:
        """Return a copy with a different description."""
        return self.model_copy(update={"description": description})

    @classmethod
    def basic(cls) -> SecuritySchemeObject:
        return cls(
            type=SecuritySchemeType.HTTP,
            description=BASIC_DESCRIPTION,
            scheme=HTTPAuthScheme.BASIC,
        )

    @classmethod
    def api_key(
        cls, name: str = "X-API-Key", location: Location = Location.HEADER
    ) -> SecuritySchemeObject:
        return cls(
            type=SecuritySchemeType.API_KEY,
            description=API_KEY_DESCRIPTION,
            name=name,
            in_=location,
        )

    @classmethod
    def bearer(cls, format: str | None = None) -> SecuritySchemeObject:
        return cls(
            type=SecuritySchemeType.HTTP,
            description=BEARER_DESCRIPTION,
            scheme=HTTPAuthScheme.BEARER,
            bearer_format=format,
        )

    @classmethod
    def oauth2(
        cls,
        flow: OAuth2Flow,
        refresh_url: str | None = None,
        scopes: dict[str, str] | None = None,
    ) -> SecuritySchemeObject:
        return cls(
            type=SecuritySchemeType.OAUTH2,
            description=OAUTH2_DESCRIPTION,
            flows=flow.flow(refresh_url=refresh_url, scopes=scopes),
        )

    @classmethod
    def open_id_connect(cls, url: str) -> SecuritySchemeObject:
        return cls(
            type=SecuritySchemeType.OPEN_ID_CONNECT,
            description=OPEN_ID_CONNECT_DESCRIPTION,
            open_id_connect_url=url,
        )
