"""OAuth account linking routes."""

import json
from datetime import datetime
from typing import Any, Generic, TypeVar

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import (
    APIRouter,
    Cookie,
    Header,
    HTTPException,
    Query,
    Request,
    Response,
    status,
)
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from studyhall.application.usecase.oauth import (
    AuthorizeUseCase,
    BulkUnlinkUseCase,
    CheckConflictsUseCase,
    CleanupTokensUseCase,
    GetAuditLogsUseCase,
    LinkProviderUseCase,
    ListProvidersUseCase,
    OAuthCallbackUseCase,
    ProviderStatusUseCase,
    RefreshProviderTokensUseCase,
    UnlinkProviderUseCase,
)
from studyhall.application.usecase.oauth.audit_logs import GetAuditLogsRequest
from studyhall.application.usecase.oauth.authorize import (
    AuthorizeRequest,
    AuthorizeResponse,
)
from studyhall.application.usecase.oauth.callback import (
    CallbackRequest,
    CallbackResponse,
)
from studyhall.application.usecase.oauth.check_conflicts import CheckConflictsRequest
from studyhall.application.usecase.oauth.cleanup_tokens import CleanupTokensRequest
from studyhall.application.usecase.oauth.link_provider import (
    LinkProviderRequest,
    LinkProviderResponse,
)
from studyhall.application.usecase.oauth.list_providers import (
    ListProvidersRequest,
    ListProvidersResponse,
    ProviderStatusRequest,
)
from studyhall.application.usecase.oauth.refresh_tokens import (
    RefreshProviderTokensRequest,
)
from studyhall.application.usecase.oauth.unlink_provider import (
    BulkUnlinkRequest,
    UnlinkProviderRequest,
    UnlinkProviderResponse,
)
from studyhall.domain.service import (
    AuditLogPage,
    BulkUnlinkResult,
    CleanupReport,
    JWTService,
    LinkedProviderStatus,
)
from studyhall.domain.value import (
    AccountRole,
    AuditEventType,
    AuthProvider,
    ConflictReport,
    PostedIdentity,
    UserInfo,
)
from studyhall.util.error import JWTError
from studyhall.util.jwt import TokenPayload

router = APIRouter(prefix="/oauth", tags=["oauth"], route_class=DishkaRoute)

T = TypeVar("T")

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope shared by all OAuth routes."""

    success: bool = True
    message: str | None = None
    data: T


class CallbackBody(BaseModel):
    """Callback payload, relayed as JSON or form-posted by Apple.

    ``id_token`` is accepted for compatibility and ignored: identity is read
    from the token endpoint response.
    """

    code: str
    state: str | None = None
    id_token: str | None = None
    user: dict[str, Any] | None = None


class LinkBody(BaseModel):
    """Link payload after the provider redirected back."""

    code: str
    state: str | None = None
    user: dict[str, Any] | None = None


class CheckConflictsBody(BaseModel):
    """Candidate identity for the pre-flight check."""

    provider: str
    user_info: UserInfo


class BulkUnlinkBody(BaseModel):
    """Providers to unlink."""

    providers: list[AuthProvider]


def require_session(
    jwt_service: JWTService,
    auth_token: str | None,
    authorization: str | None,
) -> TokenPayload:
    """Resolve the signed-in account from cookie or bearer header.

    Raises:
        HTTPException: 401 if no valid session token is present
    """
    token = auth_token
    if not token and authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    try:
        return jwt_service.verify(token)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
        )


def posted_identity(user: dict[str, Any] | None) -> PostedIdentity | None:
    """Normalize Apple's posted ``user`` object.

    Apple sends ``{"name": {"firstName", "lastName"}, "email"}``.
    """
    if not user:
        return None
    name = user.get("name") or {}
    return PostedIdentity(
        first_name=name.get("firstName"),
        last_name=name.get("lastName"),
        email=user.get("email"),
    )


async def read_callback_body(request: Request) -> CallbackBody:
    """Parse a JSON or form-posted callback body.

    Apple's ``response_mode=form_post`` sends the fields as a form, with
    ``user`` as a JSON string.

    Raises:
        HTTPException: 422 if the body is malformed
    """
    content_type = request.headers.get("content-type", "")
    try:
        if content_type.startswith(FORM_CONTENT_TYPES):
            form = await request.form()
            fields: dict[str, Any] = {
                key: value for key, value in form.items() if isinstance(value, str)
            }
            if "user" in fields:
                fields["user"] = json.loads(fields["user"])
            return CallbackBody.model_validate(fields)
        return CallbackBody.model_validate_json(await request.body())
    except (PydanticValidationError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid callback payload: {e}",
        )


def client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


@router.get("/{provider}/authorize", response_model=ApiResponse[AuthorizeResponse])
async def authorize(
    provider: str,
    authorize_use_case: FromDishka[AuthorizeUseCase],
    state: str | None = None,
    use_pkce: bool = False,
) -> ApiResponse[AuthorizeResponse]:
    """Build the provider authorization URL.

    Example:
        GET /oauth/google/authorize?use_pkce=true

        Response:
        {
            "success": true,
            "data": {
                "auth_url": "https://accounts.google.com/o/oauth2/v2/auth?...",
                "state": "1739experience.9f2c....",
                "uses_pkce": true
            }
        }
    """
    result = await authorize_use_case.execute(
        AuthorizeRequest(provider=provider, state=state, use_pkce=use_pkce)
    )
    return ApiResponse(data=result)


@router.post("/{provider}/callback", response_model=ApiResponse[CallbackResponse])
async def callback(
    provider: str,
    request: Request,
    callback_use_case: FromDishka[OAuthCallbackUseCase],
) -> ApiResponse[CallbackResponse]:
    """Complete a provider sign-in and return a session token.

    Accepts JSON, or the form post Apple sends with ``response_mode=form_post``.
    """
    body = await read_callback_body(request)
    result = await callback_use_case.execute(
        CallbackRequest(
            provider=provider,
            code=body.code,
            state=body.state,
            user=posted_identity(body.user),
            ip_address=client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
    )
    return ApiResponse(message="OAuth authentication successful", data=result)


@router.post("/{provider}/link", response_model=ApiResponse[LinkProviderResponse])
async def link_provider(
    provider: str,
    body: LinkBody,
    request: Request,
    link_use_case: FromDishka[LinkProviderUseCase],
    jwt_service: FromDishka[JWTService],
    auth_token: str | None = Cookie(default=None),
    authorization: str | None = Header(default=None),
) -> ApiResponse[LinkProviderResponse]:
    """Link another provider to the signed-in account.

    Responds 409 with the conflict report when the identity cannot be linked.
    """
    session = require_session(jwt_service, auth_token, authorization)
    result = await link_use_case.execute(
        LinkProviderRequest(
            account_id=session.account_id,
            provider=provider,
            code=body.code,
            state=body.state,
            user=posted_identity(body.user),
            ip_address=client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
    )
    return ApiResponse(
        message=f"{result.provider.value} account linked successfully", data=result
    )


@router.post("/check-conflicts", response_model=ApiResponse[ConflictReport])
async def check_conflicts(
    body: CheckConflictsBody,
    check_conflicts_use_case: FromDishka[CheckConflictsUseCase],
    jwt_service: FromDishka[JWTService],
    auth_token: str | None = Cookie(default=None),
    authorization: str | None = Header(default=None),
) -> ApiResponse[ConflictReport]:
    """Check whether an identity could be linked without conflict."""
    session = require_session(jwt_service, auth_token, authorization)
    report = await check_conflicts_use_case.execute(
        CheckConflictsRequest(
            account_id=session.account_id,
            provider=body.provider,
            user_info=body.user_info,
        )
    )
    return ApiResponse(data=report)


@router.get("/providers", response_model=ApiResponse[ListProvidersResponse])
async def list_providers(
    list_providers_use_case: FromDishka[ListProvidersUseCase],
    jwt_service: FromDishka[JWTService],
    auth_token: str | None = Cookie(default=None),
    authorization: str | None = Header(default=None),
) -> ApiResponse[ListProvidersResponse]:
    """List linked providers with token status."""
    session = require_session(jwt_service, auth_token, authorization)
    result = await list_providers_use_case.execute(
        ListProvidersRequest(account_id=session.account_id)
    )
    return ApiResponse(data=result)


@router.get("/{provider}/status", response_model=ApiResponse[LinkedProviderStatus])
async def provider_status(
    provider: str,
    provider_status_use_case: FromDishka[ProviderStatusUseCase],
    jwt_service: FromDishka[JWTService],
    auth_token: str | None = Cookie(default=None),
    authorization: str | None = Header(default=None),
) -> ApiResponse[LinkedProviderStatus]:
    """Get one linked provider's status; 404 if not linked."""
    session = require_session(jwt_service, auth_token, authorization)
    result = await provider_status_use_case.execute(
        ProviderStatusRequest(account_id=session.account_id, provider=provider)
    )
    return ApiResponse(data=result)


@router.delete("/{provider}/unlink", response_model=ApiResponse[UnlinkProviderResponse])
async def unlink_provider(
    provider: str,
    request: Request,
    unlink_use_case: FromDishka[UnlinkProviderUseCase],
    jwt_service: FromDishka[JWTService],
    auth_token: str | None = Cookie(default=None),
    authorization: str | None = Header(default=None),
) -> ApiResponse[UnlinkProviderResponse]:
    """Unlink a provider, refusing to remove the last sign-in method."""
    session = require_session(jwt_service, auth_token, authorization)
    result = await unlink_use_case.execute(
        UnlinkProviderRequest(
            account_id=session.account_id,
            provider=provider,
            ip_address=client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
    )
    return ApiResponse(message=result.message, data=result)


@router.post("/bulk-unlink", response_model=ApiResponse[BulkUnlinkResult])
async def bulk_unlink(
    body: BulkUnlinkBody,
    request: Request,
    response: Response,
    bulk_unlink_use_case: FromDishka[BulkUnlinkUseCase],
    jwt_service: FromDishka[JWTService],
    auth_token: str | None = Cookie(default=None),
    authorization: str | None = Header(default=None),
) -> ApiResponse[BulkUnlinkResult]:
    """Unlink several providers; 207 when some of them fail."""
    session = require_session(jwt_service, auth_token, authorization)
    result = await bulk_unlink_use_case.execute(
        BulkUnlinkRequest(
            account_id=session.account_id,
            providers=body.providers,
            ip_address=client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
    )

    if result.partial:
        response.status_code = status.HTTP_207_MULTI_STATUS
        message = (
            f"{len(result.success)} providers unlinked, {len(result.failed)} failed"
        )
    else:
        message = "All providers unlinked successfully"
    return ApiResponse(message=message, data=result)


@router.post("/{provider}/refresh", response_model=ApiResponse[LinkedProviderStatus])
async def refresh_tokens(
    provider: str,
    refresh_use_case: FromDishka[RefreshProviderTokensUseCase],
    jwt_service: FromDishka[JWTService],
    auth_token: str | None = Cookie(default=None),
    authorization: str | None = Header(default=None),
) -> ApiResponse[LinkedProviderStatus]:
    """Refresh a linked provider's tokens now."""
    session = require_session(jwt_service, auth_token, authorization)
    result = await refresh_use_case.execute(
        RefreshProviderTokensRequest(account_id=session.account_id, provider=provider)
    )
    return ApiResponse(message="Tokens refreshed successfully", data=result)


@router.get("/audit-logs", response_model=ApiResponse[AuditLogPage])
async def audit_logs(
    audit_logs_use_case: FromDishka[GetAuditLogsUseCase],
    jwt_service: FromDishka[JWTService],
    provider: AuthProvider | None = None,
    event_type: AuditEventType | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    auth_token: str | None = Cookie(default=None),
    authorization: str | None = Header(default=None),
) -> ApiResponse[AuditLogPage]:
    """Get the signed-in account's security events, newest first."""
    session = require_session(jwt_service, auth_token, authorization)
    page = await audit_logs_use_case.execute(
        GetAuditLogsRequest(
            account_id=session.account_id,
            provider=provider,
            event_type=event_type,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
            offset=offset,
        )
    )
    return ApiResponse(data=page)


@router.post("/cleanup-tokens", response_model=ApiResponse[CleanupReport])
async def cleanup_tokens(
    cleanup_use_case: FromDishka[CleanupTokensUseCase],
    jwt_service: FromDishka[JWTService],
    auth_token: str | None = Cookie(default=None),
    authorization: str | None = Header(default=None),
) -> ApiResponse[CleanupReport]:
    """Run the expired token sweep. Parent accounts only."""
    session = require_session(jwt_service, auth_token, authorization)
    report = await cleanup_use_case.execute(
        CleanupTokensRequest(
            account_id=session.account_id, role=AccountRole(session.role)
        )
    )
    return ApiResponse(
        message=f"Token cleanup completed: {report.cleaned} refreshed", data=report
    )
