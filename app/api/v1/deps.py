import hmac

from fastapi import Header, Request

from app.core.config import Settings


class UnauthorizedError(Exception):
    pass


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def require_service_token(
    request: Request,
    x_service_token: str | None = Header(default=None, alias="x-service-token"),
) -> None:
    expected = get_app_settings(request).service_api_token
    # never log the presented value
    if not x_service_token or not hmac.compare_digest(x_service_token.encode(), expected.encode()):
        raise UnauthorizedError()
