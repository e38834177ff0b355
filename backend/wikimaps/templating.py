"""
WikiMaps Backend: View Rendering
================================

What:  `render(request, name, context)` → HTML response from a Jinja2 view
       in wikimaps/templates/<name>.html.
How:   Every view receives `user_id` (the resolved identity or None) and
       `request_id` on top of the handler's own variables.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from fastapi.templating import Jinja2Templates
from starlette.requests import Request
from starlette.responses import Response

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def render(
    request: Request,
    name: str,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = 200,
) -> Response:
    variables: Dict[str, Any] = {
        "user_id": getattr(request.state, "user_id", None),
        "request_id": getattr(request.state, "request_id", ""),
    }
    variables.update(context or {})
    return templates.TemplateResponse(
        request, f"{name}.html", variables, status_code=status_code
    )
