"""Clerk session authentication for FastAPI.

A bearer token is resolved to a ``UserIdentity`` by an ``IdentityVerifier``;
the identity is then mirrored into local storage so projects can reference
it by id.
"""

import base64
from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol

import httpx
import jwt as pyjwt
import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import PyJWKClient

from sidepilot.core.config import get_settings
from sidepilot.core.exceptions import AuthenticationError
from sidepilot.db.storage import ProjectStore, get_store

logger = structlog.get_logger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class UserIdentity:
    """Authenticated caller as reported by the identity provider."""

    id: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    image_url: str | None = None


class IdentityVerifier(Protocol):
    async def verify(self, token: str) -> UserIdentity:
        """Return the identity behind ``token`` or raise AuthenticationError."""
        ...


def _extract_frontend_api_domain(pk: str) -> str:
    """Extract the Clerk frontend API domain from a publishable key.

    Clerk publishable keys are formatted as ``pk_(test|live)_<base64>`` where the
    base64 payload decodes to ``<domain>$``.
    """
    parts = pk.split("_", 2)
    if len(parts) != 3 or parts[0] != "pk":
        raise ValueError("Invalid Clerk publishable key format")

    try:
        raw = base64.b64decode(parts[2] + "==")  # add padding
        domain = raw.decode("utf-8").rstrip("$")
    except Exception as exc:
        raise ValueError("Invalid Clerk publishable key: cannot decode") from exc

    if not domain:
        raise ValueError("Invalid Clerk publishable key: empty domain")

    return domain


@lru_cache
def get_jwks_client() -> PyJWKClient:
    """Create a cached JWKS client pointing at the Clerk JWKS endpoint."""
    settings = get_settings()
    domain = _extract_frontend_api_domain(settings.clerk_publishable_key)
    jwks_url = f"https://{domain}/.well-known/jwks.json"
    return PyJWKClient(jwks_url, cache_keys=True, lifespan=300)


def decode_clerk_jwt(token: str) -> dict:
    """Verify signature and time claims of a Clerk session JWT.

    Returns the claims dict. Raises ``AuthenticationError`` on any failure.
    """
    try:
        client = get_jwks_client()
        signing_key = client.get_signing_key_from_jwt(token)

        payload = pyjwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            options={
                "verify_exp": True,
                "verify_nbf": True,
                "verify_iat": True,
                "verify_aud": False,
                "require": ["sub", "exp", "nbf", "iat"],
            },
        )
    except pyjwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except pyjwt.ImmatureSignatureError:
        raise AuthenticationError("Token not yet valid (immature)")
    except pyjwt.MissingRequiredClaimError as exc:
        raise AuthenticationError(f"Missing required claim: {exc.claim}")
    except pyjwt.PyJWTError:
        raise AuthenticationError("Invalid session")
    except ValueError as exc:
        logger.error("clerk_misconfigured", error=str(exc))
        raise AuthenticationError("Authentication is misconfigured") from exc

    if not payload.get("sub"):
        raise AuthenticationError("Token missing sub claim")

    return payload


def _validate_audience_claim(aud_claim: object, allowed_audiences: list[str]) -> None:
    """Validate aud claim against configured allowed audiences."""
    if aud_claim is None:
        raise AuthenticationError("Missing aud claim")

    if isinstance(aud_claim, str):
        audiences = {aud_claim}
    elif isinstance(aud_claim, list) and all(isinstance(v, str) for v in aud_claim):
        audiences = set(aud_claim)
    else:
        raise AuthenticationError("Invalid aud claim format")

    if not audiences.intersection(allowed_audiences):
        raise AuthenticationError("Unauthorized audience (aud mismatch)")


def identity_from_claims(claims: dict) -> UserIdentity:
    """Build a UserIdentity from session claims.

    Clerk session templates commonly expose ``email``, ``first_name``,
    ``last_name`` and ``image_url``; ``given_name``/``family_name``/``picture``
    are accepted as OIDC-style fallbacks.
    """
    return UserIdentity(
        id=claims["sub"],
        email=claims.get("email") or claims.get("email_address"),
        first_name=claims.get("first_name") or claims.get("given_name"),
        last_name=claims.get("last_name") or claims.get("family_name"),
        image_url=claims.get("image_url") or claims.get("picture"),
    )


class ClerkIdentityVerifier:
    """Verifies Clerk session JWTs and resolves the user profile.

    When the session claims carry no email and a secret key is configured, the
    profile is fetched from the Clerk Backend API.
    """

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport

    async def verify(self, token: str) -> UserIdentity:
        claims = decode_clerk_jwt(token)
        settings = get_settings()

        # Validate issuer against Clerk domain derived from publishable key
        try:
            expected_issuer = f"https://{_extract_frontend_api_domain(settings.clerk_publishable_key)}"
        except ValueError as exc:
            logger.error("clerk_misconfigured", error=str(exc))
            raise AuthenticationError("Authentication is misconfigured") from exc
        if claims.get("iss") != expected_issuer:
            raise AuthenticationError("Invalid issuer (iss mismatch)")

        # Validate authorized party (azp) against allowed origins
        azp = claims.get("azp")
        if not azp:
            raise AuthenticationError("Missing azp claim")
        if azp not in settings.clerk_allowed_origins:
            raise AuthenticationError("Unauthorized origin (azp mismatch)")

        # Optional audience validation (only enforced when configured)
        if settings.clerk_allowed_audiences:
            _validate_audience_claim(claims.get("aud"), settings.clerk_allowed_audiences)

        identity = identity_from_claims(claims)
        if identity.email is None and settings.clerk_secret_key:
            identity = await self.fetch_profile(identity)
        return identity

    async def fetch_profile(self, identity: UserIdentity) -> UserIdentity:
        """Fill profile fields from ``GET /users/{id}``; keeps claims on failure."""
        settings = get_settings()
        url = f"{settings.clerk_api_url.rstrip('/')}/users/{identity.id}"

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=5.0) as client:
                response = await client.get(
                    url,
                    headers={"Authorization": f"Bearer {settings.clerk_secret_key}"},
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(
                "clerk_profile_fetch_failed",
                user_id=identity.id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return identity

        email = None
        primary_id = data.get("primary_email_address_id")
        addresses = data.get("email_addresses") or []
        for address in addresses:
            if address.get("id") == primary_id:
                email = address.get("email_address")
                break
        if email is None and addresses:
            email = addresses[0].get("email_address")

        return UserIdentity(
            id=identity.id,
            email=email,
            first_name=data.get("first_name") or identity.first_name,
            last_name=data.get("last_name") or identity.last_name,
            image_url=data.get("image_url") or identity.image_url,
        )


@lru_cache
def get_identity_verifier() -> IdentityVerifier:
    """FastAPI dependency returning the process-wide identity verifier."""
    return ClerkIdentityVerifier()


async def authenticate(
    token: str | None,
    verifier: IdentityVerifier,
    store: ProjectStore,
) -> UserIdentity:
    """Resolve a bearer token into a UserIdentity and mirror it locally.

    Raises:
        AuthenticationError: token missing, invalid, or expired.
    """
    if not token:
        raise AuthenticationError("No session token provided")

    identity = await verifier.verify(token)
    await store.upsert_user(identity)
    return identity


async def require_auth(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
    store: ProjectStore = Depends(get_store),
) -> UserIdentity:
    """FastAPI dependency that authenticates the caller.

    Usage::

        @router.get("/protected")
        async def protected(user: UserIdentity = Depends(require_auth)):
            ...
    """
    token = credentials.credentials if credentials is not None else None
    identity = await authenticate(token, verifier, store)

    # Set user_id on request state for downstream use (error handlers, audit logging)
    request.state.user_id = identity.id

    return identity
