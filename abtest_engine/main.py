import logging
import random
from typing import Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Path, Query
from starlette import status

from abtest_engine.core.auth import require_auth_token
from abtest_engine.core.context import ABTestingContext, get_ab_context
from abtest_engine.core.db import build_engine, build_session_factory, init_db
from abtest_engine.core.logging import configure_logging
from abtest_engine.core.settings import ABTestSettings, get_settings
from abtest_engine.models.schemas.event import (
    ConversionCreateModel,
    DebugConversionModel,
    DebugInteractionModel,
    InteractionCreateModel,
    TrackResponseModel,
)
from abtest_engine.models.schemas.experiment import ForceVariantModel, VariantResponseModel
from abtest_engine.models.schemas.sections import SECTION_CONFIG_MODELS
from abtest_engine.repositories.experiment_repo import TestRegistry, default_registry
from abtest_engine.services.event_service import AnalyticsSink, RecordingSink
from abtest_engine.services.experiment_service import RandomProvider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ab", tags=["ab-testing"])

debug_router = APIRouter(
    prefix="/debug/ab",
    tags=["ab-testing-debug"],
    dependencies=[Depends(require_auth_token)],
)


def _variant_or_404(test_id: str, context: ABTestingContext, visitor_id: Optional[str]):
    variant = context.binding.get_variant(test_id, visitor_id)
    if variant is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No variant available for test {test_id}.",
        )
    return VariantResponseModel.from_variant(test_id, variant)


@router.get(
    "/tests/{test_id}/variant",
    response_model=VariantResponseModel,
    status_code=status.HTTP_200_OK,
    summary="Get the visitor's variant",
)
def get_test_variant(
    test_id: str = Path(..., description="The ID of the test."),
    visitor_id: Optional[str] = Query(None, description="Stable id for deterministic bucketing."),
    context: ABTestingContext = Depends(get_ab_context),
):
    """
    Retrieves the visitor's variant. If no assignment exists, a new,
    persistent assignment is made from the test's traffic weights.
    """
    return _variant_or_404(test_id, context, visitor_id)


@router.get(
    "/sections/{section}/config",
    status_code=status.HTTP_200_OK,
    summary="Get the variant configuration for a page section",
)
def get_section_config(
    section: str = Path(..., description="Registry section key, e.g. 'hero'."),
    visitor_id: Optional[str] = Query(None),
    context: ABTestingContext = Depends(get_ab_context),
):
    test = context.registry.get(section)
    if test is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown section {section}.",
        )

    model = SECTION_CONFIG_MODELS.get(section)
    if model is not None:
        config = context.binding.get_typed_config(test.test_id, model, visitor_id)
        payload = config.model_dump(by_alias=True) if config is not None else None
    else:
        payload = context.binding.get_config_for(test.test_id, visitor_id)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No configuration available for section {section}.",
        )
    return payload


@router.post(
    "/tests/{test_id}/conversions",
    response_model=TrackResponseModel,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Record a conversion for the visitor's variant",
)
def post_conversion(
    conversion: ConversionCreateModel,
    test_id: str = Path(...),
    context: ABTestingContext = Depends(get_ab_context),
):
    event = context.analytics.track_conversion(
        test_id, conversion.conversion_type, conversion.metadata
    )
    return TrackResponseModel(tracked=event is not None)


@router.post(
    "/tests/{test_id}/interactions",
    response_model=TrackResponseModel,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Record an interaction for the visitor's variant",
)
def post_interaction(
    interaction: InteractionCreateModel,
    test_id: str = Path(...),
    context: ABTestingContext = Depends(get_ab_context),
):
    event = context.analytics.track_interaction(
        test_id, interaction.interaction_type, interaction.metadata
    )
    return TrackResponseModel(tracked=event is not None)


# --- debug surface, mounted only in debug mode ---


@debug_router.get("", summary="Inspect configuration and current assignments")
def get_debug_info(context: ABTestingContext = Depends(get_ab_context)):
    return context.debug_console.get_debug_info()


@debug_router.post("/force", response_model=VariantResponseModel | None)
def post_force_variant(
    force: ForceVariantModel,
    context: ABTestingContext = Depends(get_ab_context),
):
    context.debug_console.force_variant(force.test_id, force.variant_id)
    # the forced id is unchecked, so it may not resolve to anything
    test = context.registry.lookup_test(force.test_id)
    variant = test.get_variant(force.variant_id) if test else None
    return VariantResponseModel.from_variant(force.test_id, variant) if variant else None


@debug_router.get("/variants/{test_id}", response_model=VariantResponseModel)
def get_debug_variant(
    test_id: str,
    visitor_id: Optional[str] = Query(None),
    context: ABTestingContext = Depends(get_ab_context),
):
    variant = context.debug_console.get_variant(test_id, visitor_id)
    if variant is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No variant available for test {test_id}.",
        )
    return VariantResponseModel.from_variant(test_id, variant)


@debug_router.post("/conversions", response_model=TrackResponseModel)
def post_debug_conversion(
    conversion: DebugConversionModel,
    context: ABTestingContext = Depends(get_ab_context),
):
    event = context.debug_console.track_conversion(
        conversion.test_id, conversion.conversion_type, conversion.metadata
    )
    return TrackResponseModel(tracked=event is not None)


@debug_router.post("/interactions", response_model=TrackResponseModel)
def post_debug_interaction(
    interaction: DebugInteractionModel,
    context: ABTestingContext = Depends(get_ab_context),
):
    event = context.debug_console.track_interaction(
        interaction.test_id, interaction.interaction_type, interaction.metadata
    )
    return TrackResponseModel(tracked=event is not None)


def create_app(
    settings: Optional[ABTestSettings] = None,
    registry: Optional[TestRegistry] = None,
    analytics_sink: Optional[AnalyticsSink] = None,
    random_provider: RandomProvider = random.random,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Variant assignment service",
        description="Assigns visitors to experiment variants and reports their exposure.",
        version="0.1.0",
    )

    engine = build_engine(settings.database_url)
    init_db(engine)

    app.state.settings = settings
    app.state.registry = registry or default_registry()
    app.state.analytics_sink = analytics_sink
    app.state.random_provider = random_provider
    # shared across requests so the debug console can list recent events
    app.state.debug_recorder = RecordingSink(limit=100) if settings.debug_mode else None
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    app.include_router(router)
    if settings.debug_mode:
        logger.info("Debug mode enabled, mounting %s", debug_router.prefix)
        app.include_router(debug_router)

    return app


if __name__ == "__main__":
    uvicorn.run("abtest_engine.main:create_app", factory=True, host="0.0.0.0", port=8000, reload=True)
