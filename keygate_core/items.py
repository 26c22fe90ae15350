"""
Item Endpoints
==============
REST handlers for items, bound to an item store:

    GET  /items
    POST /items
    GET  /items/{id}
    PUT  /items/{id}
"""

from typing import Any, Dict, Optional

from .outcomes import FailureReason
from .routing import Failure, HandlerResult, LegacyRouteTable, NO_PARAM, WITH_PARAM
from .storage import JsonItemStore


def _name_from(body: Any) -> Optional[str]:
    if not isinstance(body, dict) or body.get("name") is None:
        return None
    name = str(body["name"]).strip()
    return name or None


def build_item_routes(store: JsonItemStore) -> LegacyRouteTable:
    """Route table for the item endpoints."""

    def list_items(path_vars: Dict[str, Any], body: Any):
        return HandlerResult(data=store.list_items())

    def create_item(path_vars: Dict[str, Any], body: Any):
        name = _name_from(body)
        if name is None:
            return Failure(FailureReason.INPUT_INVALID)
        item = store.save_item({"name": name})
        return HandlerResult(
            data=item,
            status=201,
            headers={"Location": f"/items/{item['id']}"},
        )

    def get_item(path_vars: Dict[str, Any], body: Any):
        item = store.get_item(path_vars["id"])
        if item is None:
            return Failure(FailureReason.NOT_FOUND)
        return HandlerResult(data=item)

    def put_item(path_vars: Dict[str, Any], body: Any):
        item_id = path_vars["id"]
        name = _name_from(body)
        if name is None:
            return Failure(FailureReason.INPUT_INVALID)
        item, created = store.put_item({"name": name}, item_id)
        if created:
            return HandlerResult(data=item, status=201, headers={"Location": f"/items/{item_id}"})
        return HandlerResult(data=item)

    return LegacyRouteTable({
        "items": {
            NO_PARAM: {"GET": list_items, "POST": create_item},
            WITH_PARAM: {"GET": get_item, "PUT": put_item},
        }
    })
