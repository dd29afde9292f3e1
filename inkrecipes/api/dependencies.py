"""
API Dependencies
================

Service container shared by the routes, and the FastAPI dependencies that
hand its parts to request handlers.
"""

from typing import Optional

from fastapi import Request

from ..config.settings import Settings, get_settings
from ..core.mixup import MixupCompositor, MixupStore, create_mixup_store
from ..core.pipeline import RecipePipeline
from ..core.recipes import CacheProvider, RecipeRegistry, RecipeResolver
from ..core.recipes.cache import PropsKey, RenderKey
from ..core.rendering import PlaywrightPNGGenerator, RecipeRenderer, RenderEngine
from ..recipes import build_registry


class Services:
    """Long-lived collaborators for one application instance."""

    def __init__(
        self,
        settings: Settings,
        registry: RecipeRegistry,
        cache: CacheProvider,
        resolver: RecipeResolver,
        renderer: RecipeRenderer,
        pipeline: RecipePipeline,
        compositor: MixupCompositor,
        mixup_store: MixupStore,
    ):
        self.settings = settings
        self.registry = registry
        self.cache = cache
        self.resolver = resolver
        self.renderer = renderer
        self.pipeline = pipeline
        self.compositor = compositor
        self.mixup_store = mixup_store


def build_services(
    settings: Optional[Settings] = None,
    engine: Optional[RenderEngine] = None,
    registry: Optional[RecipeRegistry] = None,
    mixup_store: Optional[MixupStore] = None,
) -> Services:
    """
    Wire the render stack from settings.

    Args:
        settings: Application settings, defaults to the global settings
        engine: PNG engine, defaults to the Playwright generator on the global pool
        registry: Recipe registry, defaults to the bundled recipes
        mixup_store: Mixup persistence, defaults to the configured backend

    Returns:
        Services container
    """
    settings = settings or get_settings()
    registry = registry or build_registry(settings.recipes_config_path)
    cache = CacheProvider(
        ttls={
            PropsKey: settings.props_cache_ttl or None,
            RenderKey: settings.render_cache_ttl or None,
        },
        limits={RenderKey: settings.render_cache_max_entries},
    )
    resolver = RecipeResolver(
        registry,
        cache,
        allow_unpublished=settings.environment == "development",
        fetch_timeout=settings.data_fetch_timeout,
        default_width=settings.default_width,
        default_height=settings.default_height,
    )
    renderer = RecipeRenderer(engine or PlaywrightPNGGenerator())
    pipeline = RecipePipeline.from_settings(resolver, renderer, settings)
    compositor = MixupCompositor.from_settings(pipeline, settings)
    return Services(
        settings=settings,
        registry=registry,
        cache=cache,
        resolver=resolver,
        renderer=renderer,
        pipeline=pipeline,
        compositor=compositor,
        mixup_store=mixup_store or create_mixup_store(settings),
    )


def get_services(request: Request) -> Services:
    """Dependency returning the application's service container."""
    services: Optional[Services] = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Services not initialized")
    return services
