import logging
import random
import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from abtest_engine.core.db import get_db
from abtest_engine.core.settings import ABTestSettings
from abtest_engine.repositories.assignment_repo import AssignmentRepository
from abtest_engine.repositories.experiment_repo import TestRegistry
from abtest_engine.repositories.storage import (
    CookieJar,
    KeyValueStore,
    ResponseCookieJar,
    SECONDS_PER_DAY,
    SqlKeyValueStore,
)
from abtest_engine.services.binding_service import BindingService
from abtest_engine.services.debug_console import DebugConsole, build_debug_console
from abtest_engine.services.event_service import AnalyticsService, AnalyticsSink, RecordingSink
from abtest_engine.services.experiment_service import ExperimentService, RandomProvider

logger = logging.getLogger(__name__)


@dataclass
class ABTestingContext:
    """Everything needed to resolve and track variants for one visitor."""

    settings: ABTestSettings
    registry: TestRegistry
    assignments: AssignmentRepository
    analytics: AnalyticsService
    experiments: ExperimentService
    binding: BindingService
    debug_console: Optional[DebugConsole] = None


def build_context(
    settings: ABTestSettings,
    registry: TestRegistry,
    primary: Optional[KeyValueStore] = None,
    secondary: Optional[CookieJar] = None,
    sink: Optional[AnalyticsSink] = None,
    random_provider: RandomProvider = random.random,
    debug_recorder: Optional[RecordingSink] = None,
) -> ABTestingContext:
    """Wires the engine for one visitor. Omitting both stores disables persistence."""
    assignments = AssignmentRepository(settings, primary=primary, secondary=secondary)
    analytics = AnalyticsService(settings, assignments, sink=sink, recorder=debug_recorder)
    experiments = ExperimentService(
        settings, registry, assignments, analytics, random_provider=random_provider
    )
    binding = BindingService(settings, registry, experiments, analytics, assignments)

    return ABTestingContext(
        settings=settings,
        registry=registry,
        assignments=assignments,
        analytics=analytics,
        experiments=experiments,
        binding=binding,
        debug_console=build_debug_console(
            settings, binding, experiments, analytics, recorder=debug_recorder
        ),
    )


def _visitor_session_id(request: Request, response: Response, settings: ABTestSettings) -> str:
    session_id = request.cookies.get(settings.session_cookie_name)
    if not session_id:
        session_id = uuid.uuid4().hex
        logger.debug("Issuing new visitor session %s", session_id)

    # refresh on every request so the partition outlives the cookie mirror
    max_age = settings.cookie_expire_days * SECONDS_PER_DAY
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session_id,
        max_age=max_age,
        expires=max_age,
        path="/",
        httponly=True,
        samesite="lax",
    )
    return session_id


def get_ab_context(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
) -> ABTestingContext:
    """
    Request dependency: the visitor's primary store is their session's rows
    in ``visitor_storage``, the cookie mirror travels with the request.
    """
    state = request.app.state
    settings: ABTestSettings = state.settings

    session_id = _visitor_session_id(request, response, settings)

    return build_context(
        settings,
        state.registry,
        primary=SqlKeyValueStore(db, session_id),
        secondary=ResponseCookieJar(request.cookies, response),
        sink=state.analytics_sink,
        random_provider=state.random_provider,
        debug_recorder=state.debug_recorder,
    )
