from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import ValidationError

from ..config import FEED_DEFAULT_PAGE_SIZE
from ..deps import get_interaction_store, get_user_directory
from ..errors import EngineError
from ..http_helpers import FEED_RETRY_MESSAGE, first_validation_message, parse_bool_flag, raise_http_error
from ..schemas import FeedFilters
from ..services.feed import get_feed
from ..stores import InteractionStore, UserDirectory
from .swipes import swipe_response

router = APIRouter()


@router.get("/recommendations")
def get_recommendations(
    user_id: str,
    page: int = 1,
    page_size: int = FEED_DEFAULT_PAGE_SIZE,
    same_school: str | None = None,
    same_program: str | None = None,
    min_age: int | None = None,
    max_age: int | None = None,
    directory: UserDirectory = Depends(get_user_directory),
    store: InteractionStore = Depends(get_interaction_store),
) -> dict[str, Any]:
    try:
        filters = FeedFilters(
            same_school=parse_bool_flag(same_school, "same_school"),
            same_program=parse_bool_flag(same_program, "same_program"),
            min_age=min_age,
            max_age=max_age,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=first_validation_message(exc))

    try:
        result = get_feed(directory, store, user_id, page=page, page_size=page_size, filters=filters)
    except EngineError as exc:
        raise_http_error(exc, unavailable_detail=FEED_RETRY_MESSAGE)
    return result.model_dump(mode="json")


@router.post("/recommendations")
def post_recommendation_action(
    payload: dict[str, Any],
    response: Response,
    directory: UserDirectory = Depends(get_user_directory),
    store: InteractionStore = Depends(get_interaction_store),
) -> dict[str, Any]:
    return swipe_response(payload, response, directory, store)
