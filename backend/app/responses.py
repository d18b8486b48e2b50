"""Success envelope returned by every JSON endpoint."""
from typing import Any, Dict, Optional


def success_response(message: str, data: Any = None, meta: Optional[Any] = None) -> Dict[str, Any]:
    """Build ``{success, message, data, meta?}``.

    ``meta`` may be a ``PageMeta`` from the query builder or a plain dict.
    """
    body: Dict[str, Any] = {"success": True, "message": message, "data": data}
    if meta is not None:
        body["meta"] = meta.to_dict() if hasattr(meta, "to_dict") else meta
    return body
