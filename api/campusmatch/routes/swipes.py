from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import ValidationError

from ..config import SWIPE_HISTORY_DEFAULT_LIMIT
from ..deps import get_interaction_store, get_user_directory
from ..errors import EngineError
from ..http_helpers import SWIPE_RETRY_MESSAGE, first_validation_message, raise_http_error
from ..schemas import SwipeAction, SwipeRequest
from ..services.swipes import list_swipe_history, record_swipe
from ..stores import InteractionStore, UserDirectory

router = APIRouter()


def _swipe_message(action: SwipeAction, created: bool) -> str:
    if not created:
        return "Swipe updated successfully"
    return f"Profile {'liked' if action == SwipeAction.LIKE else 'skipped'} successfully"


def swipe_response(
    payload: dict[str, Any],
    response: Response,
    directory: UserDirectory,
    store: InteractionStore,
) -> dict[str, Any]:
    try:
        req = SwipeRequest.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=first_validation_message(exc))

    try:
        result = record_swipe(directory, store, req.swiper_id, req.target_id, req.action)
    except EngineError as exc:
        raise_http_error(exc, unavailable_detail=SWIPE_RETRY_MESSAGE)

    response.status_code = 201 if result.created else 200
    return {
        "accepted": result.accepted,
        "action": result.action.value,
        "is_match": result.is_match,
        "match_id": result.match_id,
        "message": _swipe_message(result.action, result.created),
    }


@router.post("/swipes")
def post_swipe(
    payload: dict[str, Any],
    response: Response,
    directory: UserDirectory = Depends(get_user_directory),
    store: InteractionStore = Depends(get_interaction_store),
) -> dict[str, Any]:
    return swipe_response(payload, response, directory, store)


@router.get("/swipes")
def get_swipes(
    user_id: str,
    action: str = "all",
    limit: int = SWIPE_HISTORY_DEFAULT_LIMIT,
    directory: UserDirectory = Depends(get_user_directory),
    store: InteractionStore = Depends(get_interaction_store),
) -> dict[str, Any]:
    try:
        edges = list_swipe_history(directory, store, user_id, action=action, limit=limit)
    except EngineError as exc:
        raise_http_error(exc)
    swipes = [e.model_dump(mode="json") for e in edges]
    return {"swipes": swipes, "count": len(swipes)}
