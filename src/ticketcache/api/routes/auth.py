"""Anti-forgery token endpoint."""

from fastapi import APIRouter, Response

from ticketcache.api.dependencies import SettingsDep
from ticketcache.api.models import APIResponse, CSRFTokenResponse
from ticketcache.security import CSRF_COOKIE_NAME, CSRF_HEADER_NAME, issue_csrf_token
from ticketcache.security.mutation_guard import CSRF_MAX_AGE_SECONDS

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/csrf", response_model=APIResponse[CSRFTokenResponse])
def get_csrf_token(response: Response, settings: SettingsDep) -> APIResponse[CSRFTokenResponse]:
    """Issue an anti-forgery token and bind it to the caller with a cookie.

    Mutating requests echo the token in the ``x-csrf-token`` header.
    """
    token = issue_csrf_token()
    response.set_cookie(
        CSRF_COOKIE_NAME,
        token,
        max_age=CSRF_MAX_AGE_SECONDS,
        httponly=True,
        samesite="strict",
        secure=settings.canonical_origin.startswith("https://"),
    )
    return APIResponse(
        data=CSRFTokenResponse(
            token=token,
            header_name=CSRF_HEADER_NAME,
            cookie_name=CSRF_COOKIE_NAME,
        )
    )
