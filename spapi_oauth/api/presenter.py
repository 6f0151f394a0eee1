"""Rendering of the authorize and redirect pages."""

from pathlib import Path
from typing import Any, Dict
from fastapi import Request
from fastapi.templating import Jinja2Templates

from spapi_oauth.api.schemas import Outcome, RenderResult

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"


def result_context(result: RenderResult) -> Dict[str, Any]:
    """Map a callback outcome to the redirect page's template variables."""
    if not result.is_success:
        return {"err": result.outcome.value, "missing": result.missing, "ttl_seconds": result.ttl_seconds}

    context: Dict[str, Any] = {
        "success": True,
        "selling_partner_id": result.selling_partner_id,
        "verified": result.credentials_verified,
        "marketplaces": result.marketplaces,
    }
    if result.token is not None:
        context.update(result.token.model_dump())
    return context


class Presenter:
    """Renders pages through Jinja2 templates."""

    def __init__(self, directory: Path = TEMPLATES_DIR):
        self.templates = Jinja2Templates(directory=str(directory))

    def authorize_page(self, request: Request):
        return self.templates.TemplateResponse(request, "authorize.html", {})

    def result_page(self, request: Request, result: RenderResult, status_code: int = 200):
        return self.templates.TemplateResponse(
            request,
            "redirect.html",
            result_context(result),
            status_code=status_code,
        )

    def failure_page(self, request: Request):
        return self.result_page(request, RenderResult(outcome=Outcome.FAILURE), status_code=500)


presenter = Presenter()
