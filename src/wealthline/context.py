"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine

from .clock import Clock, utcnow
from .config import BaseConfig
from .infra.database import SessionFactory, create_db_engine, create_session_factory, init_database
from .infra.repositories import SQLModelEventRepository, SQLModelSnapshotRepository
from .logging_config import get_logger
from .services.analysis import AnalysisService
from .services.entities import FinancialEntityService
from .services.event_store import EventStore
from .services.snapshots import SnapshotManager

logger = get_logger("context")


@dataclass
class AppContext:
    """Wired-up services sharing one engine and session factory."""

    # Configuration
    config: BaseConfig
    engine: Engine
    session_factory: SessionFactory

    # Repositories
    event_repo: SQLModelEventRepository
    snapshot_repo: SQLModelSnapshotRepository

    # Services
    event_store: EventStore
    snapshot_manager: SnapshotManager
    analysis: AnalysisService
    entities: FinancialEntityService

    clock: Clock = utcnow

    def dispose(self) -> None:
        self.engine.dispose()


def create_app_context(config: Optional[BaseConfig] = None, clock: Clock = utcnow) -> AppContext:
    """Create the engine, make sure the schema exists and build every service."""

    if config is None:
        config = BaseConfig()

    engine = create_db_engine(config)
    init_database(engine)
    session_factory = create_session_factory(engine)

    event_repo = SQLModelEventRepository(session_factory)
    snapshot_repo = SQLModelSnapshotRepository(session_factory)

    event_store = EventStore(
        session_factory=session_factory, events=event_repo, snapshots=snapshot_repo, clock=clock
    )
    snapshot_manager = SnapshotManager(
        event_store=event_store,
        snapshots=snapshot_repo,
        clock=clock,
        enabled=config.CHECKPOINTS_ENABLED,
    )
    analysis = AnalysisService(event_store=event_store, snapshot_manager=snapshot_manager, clock=clock)
    entities = FinancialEntityService(
        session_factory=session_factory, event_store=event_store, clock=clock
    )

    logger.debug(
        "Application context ready",
        extra={"database": config.DATABASE_URL, "checkpoints": config.CHECKPOINTS_ENABLED},
    )
    return AppContext(
        config=config,
        engine=engine,
        session_factory=session_factory,
        event_repo=event_repo,
        snapshot_repo=snapshot_repo,
        event_store=event_store,
        snapshot_manager=snapshot_manager,
        analysis=analysis,
        entities=entities,
        clock=clock,
    )
