"""Shared service for ingesting odds data into the database."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

import structlog
from gridline_core.api_models import OddsEvent
from gridline_core.config import Settings, get_settings
from gridline_core.database import async_session_maker

from gridline_ingest.markets import decompose
from gridline_ingest.odds_fetcher import OddsAPIClient
from gridline_ingest.reconciler import EventReconciler
from gridline_ingest.storage.readers import GameReader
from gridline_ingest.storage.upsert import UpsertEngine
from gridline_ingest.storage.writers import OddsWriter
from gridline_ingest.windows import TimeWindow, current_week_window

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class EventIngestionFailure:
    """Information about a single event that failed to ingest."""

    event_id: str | None
    error: str


@dataclass(slots=True)
class EventWriteSummary:
    """Rows written for one successfully processed event."""

    event_id: str
    game_id: int
    betting_lines: int
    outcomes: int


@dataclass(slots=True)
class OddsIngestionResult:
    """Outcome of one odds pipeline run."""

    sport_key: str
    window: TimeWindow | None
    total_events: int
    processed_events: int = 0
    betting_lines: int = 0
    outcomes: int = 0
    events_refreshed: bool = False
    quota_remaining: int | None = None
    failures: list[EventIngestionFailure] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Return True when no failures occurred."""
        return not self.failures and self.processed_events == self.total_events

    @property
    def error_count(self) -> int:
        """Number of failed events."""
        return len(self.failures)


@dataclass(slots=True)
class OddsIngestionCallbacks:
    """Optional callbacks for instrumentation during ingestion."""

    on_events_loaded: Callable[[int], None] | None = None
    on_event_processed: Callable[[str], None] | None = None
    on_event_failed: Callable[[str | None, Exception], None] | None = None


class OddsIngestionService:
    """Service responsible for fetching odds and persisting them."""

    def __init__(
        self,
        client: OddsAPIClient,
        *,
        settings: Settings | None = None,
        session_factory=async_session_maker,
    ) -> None:
        self._client = client
        self._settings = settings or get_settings()
        self._session_factory = session_factory

    @property
    def sport(self) -> str:
        return self._settings.data_collection.sport

    def _tracked_bookmakers(self, odds_event: OddsEvent):
        wanted = self._settings.data_collection.bookmakers
        for bookmaker in odds_event.bookmakers:
            if not wanted or bookmaker.key in wanted:
                yield bookmaker

    async def process_event(self, odds_event: OddsEvent) -> EventWriteSummary:
        """
        Persist one event with its odds in a single transaction.

        Upserts the Event, reconciles it to a Game, then writes one BettingLine
        and the flat outcome rows per tracked bookmaker. A failure rolls back
        this event only.
        """
        async with self._session_factory() as session:
            upserts = UpsertEngine(session)
            writer = OddsWriter(session, upserts)

            await writer.upsert_event(odds_event)
            game = await EventReconciler(session, upserts).match_or_create_game(odds_event)

            betting_lines = 0
            outcomes = 0
            for bookmaker in self._tracked_bookmakers(odds_event):
                decomposition = decompose(odds_event, bookmaker)
                await writer.upsert_betting_line(game.id, decomposition)
                betting_lines += 1
                outcomes += await writer.upsert_outcomes(odds_event.id, decomposition.outcomes)

            await session.commit()

        if betting_lines == 0:
            logger.info("event_without_tracked_bookmakers", event_id=odds_event.id)

        logger.info(
            "event_ingested",
            event_id=odds_event.id,
            game_id=game.id,
            betting_lines=betting_lines,
            outcomes=outcomes,
        )
        return EventWriteSummary(
            event_id=odds_event.id,
            game_id=game.id,
            betting_lines=betting_lines,
            outcomes=outcomes,
        )

    async def load_week_events(
        self, window: TimeWindow, *, refresh_events: bool = False
    ) -> tuple[list[str], bool]:
        """
        Event ids commencing inside the window.

        Stored events are used when present; otherwise (or when forced) the
        provider's event list for the window is fetched and upserted first.

        Returns:
            Tuple of (event ids, whether the provider list was fetched)
        """
        if not refresh_events:
            async with self._session_factory() as session:
                stored = await GameReader(session).events_in_window(window, self.sport)
            if stored:
                logger.info("week_events_loaded", source="database", count=len(stored))
                return [event.id for event in stored], False

        response = await self._client.get_events(
            self.sport,
            commence_time_from=window.start,
            commence_time_to=window.end,
        )
        events = [event for event in response.events if window.contains(event.commence_time)]

        async with self._session_factory() as session:
            await OddsWriter(session).upsert_events(events)
            await session.commit()

        logger.info("week_events_loaded", source="provider", count=len(events))
        return [event.id for event in events], True

    async def ingest_week(
        self,
        window: TimeWindow | None = None,
        *,
        refresh_events: bool = False,
        callbacks: OddsIngestionCallbacks | None = None,
    ) -> OddsIngestionResult:
        """Fetch per-event odds (props included) for every event in the week window."""
        window = window or current_week_window()
        callback_bundle = callbacks or OddsIngestionCallbacks()
        settings = self._settings.data_collection

        event_ids, refreshed = await self.load_week_events(window, refresh_events=refresh_events)
        if callback_bundle.on_events_loaded:
            callback_bundle.on_events_loaded(len(event_ids))

        result = OddsIngestionResult(
            sport_key=self.sport,
            window=window,
            total_events=len(event_ids),
            events_refreshed=refreshed,
        )

        for event_id in event_ids:
            try:
                response = await self._client.get_event_odds(
                    self.sport,
                    event_id,
                    regions=settings.regions,
                    markets=settings.markets,
                    bookmakers=settings.bookmakers,
                )
                result.quota_remaining = response.quota_remaining
                summary = await self.process_event(response.event)
            except Exception as exc:
                self._record_failure(result, event_id, exc, callback_bundle)
                continue

            self._record_success(result, summary, callback_bundle)

        logger.info(
            "week_ingested",
            sport=self.sport,
            window_start=window.start.isoformat(),
            window_end=window.end.isoformat(),
            processed_events=result.processed_events,
            total_events=result.total_events,
            failures=result.error_count,
            quota_remaining=result.quota_remaining,
        )
        return result

    async def ingest_current(
        self, *, callbacks: OddsIngestionCallbacks | None = None
    ) -> OddsIngestionResult:
        """Fetch odds for all upcoming events in one bulk call and persist each event."""
        callback_bundle = callbacks or OddsIngestionCallbacks()
        settings = self._settings.data_collection

        response = await self._client.get_odds(
            self.sport,
            regions=settings.regions,
            markets=settings.markets,
            bookmakers=settings.bookmakers,
        )
        if callback_bundle.on_events_loaded:
            callback_bundle.on_events_loaded(len(response.events))

        result = OddsIngestionResult(
            sport_key=self.sport,
            window=None,
            total_events=len(response.events),
            events_refreshed=True,
            quota_remaining=response.quota_remaining,
        )

        for odds_event in response.events:
            try:
                summary = await self.process_event(odds_event)
            except Exception as exc:
                self._record_failure(result, odds_event.id, exc, callback_bundle)
                continue

            self._record_success(result, summary, callback_bundle)

        logger.info(
            "current_odds_ingested",
            sport=self.sport,
            processed_events=result.processed_events,
            total_events=result.total_events,
            failures=result.error_count,
            quota_remaining=result.quota_remaining,
        )
        return result

    @staticmethod
    def _record_success(
        result: OddsIngestionResult,
        summary: EventWriteSummary,
        callbacks: OddsIngestionCallbacks,
    ) -> None:
        result.processed_events += 1
        result.betting_lines += summary.betting_lines
        result.outcomes += summary.outcomes
        if callbacks.on_event_processed:
            callbacks.on_event_processed(summary.event_id)

    def _record_failure(
        self,
        result: OddsIngestionResult,
        event_id: str | None,
        exc: Exception,
        callbacks: OddsIngestionCallbacks,
    ) -> None:
        logger.warning(
            "ingestion_event_failed",
            sport=self.sport,
            event_id=event_id,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        result.failures.append(EventIngestionFailure(event_id=event_id, error=str(exc)))
        if callbacks.on_event_failed:
            callbacks.on_event_failed(event_id, exc)
