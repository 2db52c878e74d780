from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from app.api.v1.deps import get_app_settings, require_service_token
from app.core.bundle import build_secret_bundle
from app.core.chat_secrets import collect_chat_secrets

router = APIRouter()


@router.get("/secrets", tags=["secrets"], dependencies=[Depends(require_service_token)])
def secrets(request: Request) -> Dict[str, Any]:
    # chat databases are re-read from the live environment on every call
    chat_secrets = collect_chat_secrets(request.app.state.environ)
    return build_secret_bundle(get_app_settings(request), chat_secrets)
