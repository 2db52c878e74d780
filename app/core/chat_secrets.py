import os
from dataclasses import replace
from typing import List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.core.indexed_keys import IndexedKeyFamily, SubField, collect_indexed

MAX_CHAT_DATABASES = 10

CHAT_DATABASE_FAMILY = IndexedKeyFamily(
    name="chat database",
    prefix="CHAT_DB_",
    max_index=MAX_CHAT_DATABASES,
    fields=(
        SubField("serviceRoleKey", suffix="_SERVICE_KEY"),
        SubField("url", suffix="_URL", required=False),
    ),
    # mobile builds ship the same values under the Expo public prefix
    fallback_prefixes=("EXPO_PUBLIC_",),
)


class ChatDatabaseSecret(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    url: Optional[str] = None
    service_role_key: str = Field(alias="serviceRoleKey")


def collect_chat_secrets(
    environ: Optional[Mapping[str, Optional[str]]] = None,
    max_databases: int = MAX_CHAT_DATABASES,
) -> List[ChatDatabaseSecret]:
    """
    Read CHAT_DB_<n>_SERVICE_KEY / CHAT_DB_<n>_URL pairs from the live environment.

    Called per request, so databases added to the environment of a running
    process (e.g. by a reloaded .env) show up without a restart.
    """
    if environ is None:
        environ = os.environ
    family = CHAT_DATABASE_FAMILY
    if max_databases != family.max_index:
        family = replace(family, max_index=max_databases)

    return [
        ChatDatabaseSecret(
            id=f"chat_db_{entry.index}",
            url=entry.values.get("url"),
            serviceRoleKey=entry.values["serviceRoleKey"],
        )
        for entry in collect_indexed(environ, family)
    ]
