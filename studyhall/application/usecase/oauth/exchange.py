"""Authorization-code redemption shared by the callback and link flows."""

import logfire

from studyhall.adapter.oauth.cache import PKCEStore
from studyhall.adapter.oauth.state import validate_state
from studyhall.domain.error import ValidationError
from studyhall.domain.service import ProviderRegistry
from studyhall.domain.value import AuthProvider, PostedIdentity, TokenSet, UserInfo


async def redeem_authorization_code(
    provider_registry: ProviderRegistry,
    pkce_store: PKCEStore,
    provider: AuthProvider,
    code: str,
    state: str | None,
    posted: PostedIdentity | None = None,
) -> tuple[UserInfo, TokenSet]:
    """Exchange a code and resolve who signed in.

    The PKCE verifier stored under ``state`` is consumed here, so a replayed
    callback for the same state finds nothing.

    Args:
        provider_registry: Provider registry
        pkce_store: Store holding verifiers by state
        provider: Provider that issued the code
        code: Authorization code
        state: State from the callback
        posted: Identity fields the provider posted to the callback

    Returns:
        Tuple of (user info, provider tokens)

    Raises:
        ValidationError: If the provider requires PKCE and no live verifier
            exists for the state
        TokenExchangeError: If the code exchange fails
        UserInfoError: If the identity cannot be resolved
    """
    pkce = pkce_store.take_once(state) if state else None

    if pkce is None and state:
        logfire.info(
            "No PKCE verifier for callback state",
            provider=provider.value,
            state_fresh=validate_state(state),
        )

    if pkce is None and provider_registry.requires_pkce(provider):
        raise ValidationError("Invalid or expired OAuth state")

    tokens = await provider_registry.exchange_code_for_tokens(
        provider, code, pkce.code_verifier if pkce else None
    )
    user_info = await provider_registry.resolve_identity(provider, tokens, posted)
    return user_info, tokens
