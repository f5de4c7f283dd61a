import re

from fastapi import APIRouter, Query

from goldmines.api.deps import GatewayDep
from goldmines.api.schemas import BookmarkIn, BookmarkOut, SavedItemOut, SavedItemsOut
from goldmines.core.exceptions import ValidationError
from goldmines.core.logger import logger
from goldmines.db.models import ItemType

router = APIRouter()

UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
ITEM_TYPES = [t.value for t in ItemType]


def validate_user_id(user_id: str) -> str:
    if not UUID_RE.match(user_id):
        raise ValidationError("Invalid user_id format. Must be a valid UUID.")
    return user_id


# ---------------------------------------------------------
# POST /bookmark (toggle)
# ---------------------------------------------------------
@router.post("/bookmark", response_model=BookmarkOut)
async def toggle_bookmark(body: BookmarkIn, gateway: GatewayDep):
    if not body.user_id or not body.item_type or body.item_id is None:
        raise ValidationError("Missing required fields: user_id, item_type, item_id")

    validate_user_id(body.user_id)

    if body.item_type not in ITEM_TYPES:
        allowed = " or ".join(f'"{t}"' for t in ITEM_TYPES)
        raise ValidationError(f"Invalid item_type. Must be {allowed}")

    action = await gateway.toggle_bookmark(body.user_id, body.item_type, body.item_id)
    logger.info("🔖 Bookmark %s: user_id=%s item_type=%s item_id=%s", action, body.user_id, body.item_type, body.item_id)

    return BookmarkOut(action=action, message=f"Bookmark {action} successfully")


# ---------------------------------------------------------
# GET /saved
# ---------------------------------------------------------
@router.get("/saved", response_model=SavedItemsOut)
async def read_saved_items(gateway: GatewayDep, user_id: str = Query("")):
    if not user_id:
        raise ValidationError("user_id is required")
    validate_user_id(user_id)

    items = await gateway.list_saved_items(user_id)
    return SavedItemsOut(saved_items=[SavedItemOut(**item) for item in items])
