"""
Recipe Routes
=============

Recipe catalog and preview rendering.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from ...config.logging import get_logger
from ...core.errors import RenderEngineFailure
from ...models.schemas import RecipeListResponse, RecipeSummary, RenderFormat
from ..dependencies import Services, get_services
from .bitmap import canvas_size

logger = get_logger(__name__)

router = APIRouter(prefix="/api/recipes", tags=["Recipes"])


@router.get("", response_model=RecipeListResponse)
async def list_recipes(services: Services = Depends(get_services)) -> RecipeListResponse:
    """List published recipes."""
    recipes = [
        RecipeSummary(
            slug=definition.slug,
            title=definition.title,
            description=definition.description,
            category=definition.category,
            has_data_fetch=definition.has_data_fetch,
            double_size_for_sharper_text=definition.render_settings.double_size_for_sharper_text,
        )
        for definition in services.registry.definitions()
    ]
    return RecipeListResponse(recipes=recipes, total=len(recipes))


@router.get("/{slug}/render")
async def render_recipe_preview(
    slug: str,
    output: str = Query("png", alias="format", pattern="^(png|svg)$", description="Output format"),
    width: Optional[int] = Query(None, gt=0, description="Canvas width"),
    height: Optional[int] = Query(None, gt=0, description="Canvas height"),
    services: Services = Depends(get_services),
) -> Response:
    """
    Render a recipe preview as PNG or SVG.

    Raises:
        HTTPException: 404 when the recipe is not known
        RenderEngineFailure: When the PNG cannot be produced
    """
    definition = services.registry.get_definition(slug)
    if definition is None:
        raise HTTPException(status_code=404, detail=f"Recipe not found: {slug}")
    width, height = canvas_size(services.settings, width, height)

    render_format = RenderFormat.SVG if output == "svg" else RenderFormat.PNG
    render_element, results = await services.pipeline.render_recipe(slug, width, height, {render_format})

    headers = {"X-Recipe-Found": "true" if render_element.found else "false"}
    if render_format == RenderFormat.SVG:
        return Response(content=results.vector or "", media_type="image/svg+xml", headers=headers)
    if results.raw_export is None:
        raise RenderEngineFailure(f"Preview render failed for {slug}", render_format.value)
    return Response(content=results.raw_export, media_type="image/png", headers=headers)
