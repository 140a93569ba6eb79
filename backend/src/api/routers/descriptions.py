"""Ad-hoc description rendering."""
from fastapi import APIRouter, Depends

from api.dependencies import get_current_user, get_settings
from core.config import Settings
from models.user import User
from schemas.description import RenderRequest, RenderResponse
from services.template_renderer import find_missing_variables, render_description

router = APIRouter(prefix="/descriptions", tags=["descriptions"])


@router.post("/render", response_model=RenderResponse)
async def render(
    data: RenderRequest,
    current_user: User = Depends(get_current_user),  # noqa: ARG001
    settings: Settings = Depends(get_settings),
) -> RenderResponse:
    """
    Render unsaved templates with the given values.

    Uses the same renderer as the push pipeline; nothing is stored.
    """
    separator = data.separator if data.separator is not None else settings.default_separator
    description = render_description(data.templates, data.values, separator)
    return RenderResponse(
        description=description,
        missing_variables=find_missing_variables(data.templates, data.values),
        character_count=len(description),
    )
