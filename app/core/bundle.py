from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from app.core.chat_secrets import ChatDatabaseSecret
from app.core.config import Settings
from app.core.indexed_keys import GEMINI_KEYS, SEARCHAPI_KEYS, SPEECHIFY_KEYS, collect_indexed_values


def prune(value: Any) -> Any:
    """
    Recursively drop empty parts of a JSON-like tree, bottom-up.

    None, blank strings, empty lists and dicts that are empty once their own
    children are pruned all go. Numbers and booleans are kept as-is.
    Returns None when nothing is left.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value if value.strip() else None
    if isinstance(value, dict):
        out = {}
        for k, v in value.items():
            pruned = prune(v)
            if pruned is not None:
                out[k] = pruned
        return out or None
    if isinstance(value, (list, tuple)):
        items = [p for p in (prune(v) for v in value) if p is not None]
        return items or None
    return value


def _chat_database(secret: ChatDatabaseSecret) -> Dict[str, Any]:
    return secret.model_dump(by_alias=True, exclude_none=True)


def build_secret_bundle(
    settings: Settings,
    chat_secrets: Sequence[ChatDatabaseSecret],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Group the configured secrets by backing service.

        {
          "supabase":  {url, serviceRoleKey, chatDatabases, feedbacksDbServiceKey},
          "razorpay":  {keyId, keySecret, webhookSecret},
          "apiKeys":   {gemini, speechify, searchApi, pdfCo, clipdrop, handwriting, stability},
          "databases": {neonDbUrl},
          "generatedAt": ISO-8601
        }

    Anything not configured is left out entirely; generatedAt is always present.
    """
    slots = settings.api_key_slots
    chat_databases: List[Dict[str, Any]] = [_chat_database(s) for s in chat_secrets]

    doc = prune({
        "supabase": {
            "url": settings.supabase_url,
            "serviceRoleKey": settings.supabase_service_role_key,
            "chatDatabases": chat_databases,
            "feedbacksDbServiceKey": settings.feedbacks_db_service_key,
        },
        "razorpay": {
            "keyId": settings.razorpay_key_id,
            "keySecret": settings.razorpay_key_secret,
            "webhookSecret": settings.razorpay_webhook_secret,
        },
        "apiKeys": {
            "gemini": collect_indexed_values(slots, GEMINI_KEYS),
            "speechify": collect_indexed_values(slots, SPEECHIFY_KEYS),
            "searchApi": collect_indexed_values(slots, SEARCHAPI_KEYS),
            "pdfCo": settings.pdf_co_api_key,
            "clipdrop": settings.clipdrop_api_key,
            "handwriting": settings.handwriting_api_key,
            "stability": settings.stability_api_key,
        },
        "databases": {
            "neonDbUrl": settings.neon_db_url,
        },
    }) or {}

    doc["generatedAt"] = (now or datetime.now(timezone.utc)).isoformat()
    return doc
