from typing import Any

from fastapi import APIRouter, Depends

from ..deps import get_interaction_store, get_user_directory
from ..errors import EngineError
from ..http_helpers import raise_http_error
from ..services.matches import list_matches
from ..stores import InteractionStore, UserDirectory

router = APIRouter()


@router.get("/matches")
def get_matches(
    user_id: str,
    directory: UserDirectory = Depends(get_user_directory),
    store: InteractionStore = Depends(get_interaction_store),
) -> dict[str, Any]:
    try:
        rows = list_matches(directory, store, user_id)
    except EngineError as exc:
        raise_http_error(exc)
    matches = [r.model_dump(mode="json") for r in rows]
    return {"matches": matches, "total": len(matches)}
