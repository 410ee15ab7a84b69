"""
===============================================================================
TARJETA CRC - compliance_engine/container.py (Composition Root / DI manual)
===============================================================================

Responsabilidades:
  - Componer dependencias (repositorios, detectores, motor, cola) siguiendo DIP.
  - Exponer factories para FastAPI (Depends), el worker y el script de cron.
  - Mantener singletons con caching (lru_cache) para recursos compartidos.

Colaboradores:
  - compliance_engine.crosscutting.config.get_settings
  - compliance_engine.domain.repositories.* (puertos)
  - compliance_engine.infrastructure.* (implementaciones)
  - compliance_engine.application.* (motor y casos de uso)

Notas:
  - Este archivo NO contiene lógica de negocio.
  - Este archivo NO depende de FastAPI.
  - En test (app_env test/testing/ci) todos los puertos son in-memory.
===============================================================================
"""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache

from .application.detectors import (
    DetectorConfig,
    DetectorRegistry,
    build_default_registry,
)
from .application.rules_engine import RulesEngine
from .application.usecases import (
    DispatchPendingEventsUseCase,
    GetComplianceStatsUseCase,
    ListFindingsUseCase,
    ListTasksUseCase,
)
from .crosscutting.config import get_settings
from .domain.repositories import (
    ActionLogRepository,
    ComplianceRepository,
    EventStore,
    HistoricalQueryService,
)
from .domain.services import DispatchQueue
from .infrastructure.queue import RQDispatchQueue, RQQueueConfig, redis_from_url
from .infrastructure.repositories import (
    InMemoryActionLogRepository,
    InMemoryComplianceRepository,
    InMemoryEventStore,
    InMemoryHistoricalQueryService,
    PostgresActionLogRepository,
    PostgresComplianceRepository,
    PostgresEventStore,
    PostgresHistoricalQueryService,
)

# =============================================================================
# Helpers internos
# =============================================================================


def _is_test_env() -> bool:
    """
    Determina si estamos en entorno de test.

    Regla:
      - app_env ∈ {"test", "testing", "ci"} => se favorecen in-memory adapters.
    """
    env = get_settings().app_env.strip().lower()
    return env in {"test", "testing", "ci"}


# =============================================================================
# Repositorios (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_event_store() -> EventStore:
    if _is_test_env():
        return InMemoryEventStore()
    return PostgresEventStore()


@lru_cache(maxsize=1)
def get_historical_query_service() -> HistoricalQueryService:
    if _is_test_env():
        return InMemoryHistoricalQueryService()
    return PostgresHistoricalQueryService()


@lru_cache(maxsize=1)
def get_compliance_repository() -> ComplianceRepository:
    if _is_test_env():
        return InMemoryComplianceRepository()
    return PostgresComplianceRepository()


@lru_cache(maxsize=1)
def get_action_log_repository() -> ActionLogRepository:
    if _is_test_env():
        return InMemoryActionLogRepository()
    return PostgresActionLogRepository()


# =============================================================================
# Motor de reglas
# =============================================================================


def get_detector_config() -> DetectorConfig:
    """Umbrales de detectores desde Settings (env)."""
    settings = get_settings()
    return DetectorConfig(
        default_assignee=settings.task_default_assignee,
        contact_excerpt_chars=settings.contact_excerpt_chars,
        price_window_days=settings.price_window_days,
        price_sample_limit=settings.price_sample_limit,
        price_min_samples=settings.price_min_samples,
        price_outlier_threshold=settings.price_outlier_threshold,
        price_critical_threshold=settings.price_critical_threshold,
        sanctions_due_hours=settings.sanctions_due_hours,
        empty_leg_window_hours=settings.empty_leg_window_hours,
        empty_leg_max_distance_nm=settings.empty_leg_max_distance_nm,
        empty_leg_candidate_limit=settings.empty_leg_candidate_limit,
        sla_response_hours=settings.sla_response_hours,
    )


@lru_cache(maxsize=1)
def get_detector_registry() -> DetectorRegistry:
    return build_default_registry(
        historical=get_historical_query_service(),
        config=get_detector_config(),
    )


@lru_cache(maxsize=1)
def get_rules_engine() -> RulesEngine:
    return RulesEngine(get_detector_registry())


# =============================================================================
# Cola (opcional)
# =============================================================================


@lru_cache(maxsize=1)
def get_dispatch_queue() -> DispatchQueue | None:
    """
    Cola para corridas asíncronas del dispatcher (RQ/Redis) si está configurada.
    """
    settings = get_settings()
    if not settings.redis_url.strip():
        return None

    return RQDispatchQueue(
        redis=redis_from_url(settings.redis_url),
        config=RQQueueConfig(queue_name=settings.dispatch_queue_name),
    )


# =============================================================================
# Casos de uso (factory por request)
# =============================================================================


def get_dispatch_use_case() -> DispatchPendingEventsUseCase:
    """Caso de uso: drenar un batch de eventos pendientes."""
    settings = get_settings()
    return DispatchPendingEventsUseCase(
        events=get_event_store(),
        engine=get_rules_engine(),
        compliance=get_compliance_repository(),
        action_log=get_action_log_repository(),
        batch_size=settings.dispatch_batch_size,
        max_batch_size=settings.dispatch_max_batch_size,
        claim_timeout=timedelta(seconds=settings.claim_timeout_seconds),
    )


def get_stats_use_case() -> GetComplianceStatsUseCase:
    return GetComplianceStatsUseCase(
        events=get_event_store(),
        compliance=get_compliance_repository(),
    )


def get_list_findings_use_case() -> ListFindingsUseCase:
    return ListFindingsUseCase(compliance=get_compliance_repository())


def get_list_tasks_use_case() -> ListTasksUseCase:
    return ListTasksUseCase(compliance=get_compliance_repository())
