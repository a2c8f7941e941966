"""
SessionStore - storage for visitor sessions and aggregated behavior.

PostgresSessionStore uses psycopg2 with connection pooling.
InMemorySessionStore keeps everything in process memory.
"""

import json
import os
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol, Tuple
from uuid import UUID

from psycopg2 import pool

from visitor_persona.models.aggregated_behavior import AggregatedBehavior, VisitorSession
from visitor_persona.models.behavior_event import BehaviorEvent
from visitor_persona.models.behavior_vector import BehaviorVector
from visitor_persona.models.persona import PersonaClassification


class SessionStore(Protocol):
    """Operations the classifier and the collection endpoint need."""

    def get_session(self, fingerprint_hash: str) -> Optional[VisitorSession]: ...

    def create_session(
        self, fingerprint_hash: str, device_type: str = 'desktop'
    ) -> VisitorSession: ...

    def touch_session(self, session_id: UUID) -> None: ...

    def get_behavior(self, session_id: UUID) -> Optional[AggregatedBehavior]: ...

    def save_behavior(self, behavior: AggregatedBehavior) -> None: ...

    def append_events(self, session_id: UUID, events: List[BehaviorEvent]) -> None: ...

    def save_classification(
        self, session_id: UUID, classification: PersonaClassification
    ) -> None: ...

    def save_vector(self, session_id: UUID, vector: BehaviorVector) -> None: ...

    def purge_older_than(
        self, logs_cutoff: datetime, behavior_cutoff: datetime
    ) -> Tuple[int, int]: ...

    def close(self) -> None: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemorySessionStore:
    """
    Process-local session store.
    Why: Local development and tests without a database.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sessions: Dict[str, VisitorSession] = {}
        self._behaviors: Dict[UUID, AggregatedBehavior] = {}
        self._events: Dict[UUID, List[BehaviorEvent]] = {}

    def get_session(self, fingerprint_hash: str) -> Optional[VisitorSession]:
        with self._lock:
            session = self._sessions.get(fingerprint_hash)
            return session.model_copy() if session else None

    def create_session(
        self, fingerprint_hash: str, device_type: str = 'desktop'
    ) -> VisitorSession:
        session = VisitorSession(
            fingerprint_hash=fingerprint_hash,
            device_type=device_type,
            consent_given=True,
        )
        with self._lock:
            self._sessions[fingerprint_hash] = session
            self._behaviors[session.id] = AggregatedBehavior(session_id=session.id)
            self._events[session.id] = []
        return session.model_copy()

    def touch_session(self, session_id: UUID) -> None:
        with self._lock:
            session = self._find(session_id)
            if session:
                session.last_seen = _utcnow()

    def get_behavior(self, session_id: UUID) -> Optional[AggregatedBehavior]:
        with self._lock:
            behavior = self._behaviors.get(session_id)
            return behavior.model_copy(deep=True) if behavior else None

    def save_behavior(self, behavior: AggregatedBehavior) -> None:
        with self._lock:
            self._behaviors[behavior.session_id] = behavior.model_copy(deep=True)

    def append_events(self, session_id: UUID, events: List[BehaviorEvent]) -> None:
        with self._lock:
            self._events.setdefault(session_id, []).extend(events)

    def events_for(self, session_id: UUID) -> List[BehaviorEvent]:
        """Raw events logged for a session."""
        with self._lock:
            return list(self._events.get(session_id, []))

    def save_classification(
        self, session_id: UUID, classification: PersonaClassification
    ) -> None:
        with self._lock:
            session = self._find(session_id)
            if session is None:
                raise KeyError(f"Unknown session: {session_id}")
            session.persona = classification.persona.value
            session.confidence = classification.confidence
            session.mood = classification.mood.value

    def save_vector(self, session_id: UUID, vector: BehaviorVector) -> None:
        with self._lock:
            behavior = self._behaviors.get(session_id)
            if behavior is None:
                raise KeyError(f"No aggregated behavior for session: {session_id}")
            behavior.behavior_vector = vector.to_list()
            behavior.updated_at = _utcnow()

    def purge_older_than(
        self, logs_cutoff: datetime, behavior_cutoff: datetime
    ) -> Tuple[int, int]:
        """Drop events logged before logs_cutoff and behavior last updated before behavior_cutoff."""
        cutoff_ms = logs_cutoff.timestamp() * 1000
        logs_deleted = 0
        with self._lock:
            for session_id, events in self._events.items():
                kept = [e for e in events if e.timestamp >= cutoff_ms]
                logs_deleted += len(events) - len(kept)
                self._events[session_id] = kept

            stale = [
                session_id
                for session_id, behavior in self._behaviors.items()
                if behavior.updated_at < behavior_cutoff
            ]
            for session_id in stale:
                del self._behaviors[session_id]
        return logs_deleted, len(stale)

    def close(self) -> None:
        pass

    def _find(self, session_id: UUID) -> Optional[VisitorSession]:
        for session in self._sessions.values():
            if session.id == session_id:
                return session
        return None


class PostgresSessionStore:
    """
    PostgreSQL storage for visitor sessions.
    Why: Persist classifications and behavior across requests and processes.
    """

    _BEHAVIOR_COLUMNS = (
        "session_id, time_on_homepage, scroll_depth, idle_time, "
        "mouse_heatmap_density, navigation_speed, clicked_resume, "
        "opened_design_showcase, opened_ai_intake_form, "
        "interacted_with_animations, opened_code_samples_count, "
        "visited_projects_count, played_demos_count, navigation_path, "
        "hovered_keywords, behavior_vector, updated_at"
    )

    def __init__(self, connection_string: Optional[str] = None):
        """
        Initialize store with database connection.

        Args:
            connection_string: PostgreSQL connection string.
                             Defaults to DATABASE_URL env var.
        """
        self.connection_string = connection_string or os.getenv('DATABASE_URL')
        self._pool: Optional[pool.ThreadedConnectionPool] = None
        self._pool_lock = threading.Lock()

    def _get_connection(self):
        """Get a connection from the pool."""
        if not self._pool:
            with self._pool_lock:
                # First requests can race here from several worker threads
                if not self._pool:
                    self._pool = pool.ThreadedConnectionPool(
                        1, 10,  # min 1, max 10 connections
                        self.connection_string
                    )
        return self._pool.getconn()

    def _release_connection(self, conn):
        """Return connection to pool."""
        if self._pool:
            self._pool.putconn(conn)

    def init_schema(self) -> None:
        """Create the session tables if they don't exist."""
        conn = self._get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS sessions (
                        id UUID PRIMARY KEY,
                        fingerprint_hash TEXT NOT NULL UNIQUE,
                        persona TEXT,
                        confidence REAL,
                        mood TEXT,
                        device_type TEXT,
                        consent_given BOOLEAN DEFAULT FALSE,
                        created_at TIMESTAMPTZ NOT NULL,
                        last_seen TIMESTAMPTZ NOT NULL
                    );

                    CREATE TABLE IF NOT EXISTS behavior_logs (
                        id BIGSERIAL PRIMARY KEY,
                        session_id UUID NOT NULL REFERENCES sessions(id),
                        event_type TEXT NOT NULL,
                        data JSONB NOT NULL,
                        timestamp TIMESTAMPTZ NOT NULL
                    );

                    CREATE TABLE IF NOT EXISTS aggregated_behaviors (
                        session_id UUID PRIMARY KEY REFERENCES sessions(id),
                        time_on_homepage REAL DEFAULT 0,
                        scroll_depth REAL DEFAULT 0,
                        idle_time REAL DEFAULT 0,
                        mouse_heatmap_density REAL DEFAULT 0,
                        navigation_speed REAL DEFAULT 0,
                        clicked_resume BOOLEAN DEFAULT FALSE,
                        opened_design_showcase BOOLEAN DEFAULT FALSE,
                        opened_ai_intake_form BOOLEAN DEFAULT FALSE,
                        interacted_with_animations BOOLEAN DEFAULT FALSE,
                        opened_code_samples_count INTEGER DEFAULT 0,
                        visited_projects_count INTEGER DEFAULT 0,
                        played_demos_count INTEGER DEFAULT 0,
                        navigation_path JSONB DEFAULT '[]',
                        hovered_keywords JSONB DEFAULT '[]',
                        behavior_vector JSONB DEFAULT '[]',
                        updated_at TIMESTAMPTZ NOT NULL
                    );

                    CREATE INDEX IF NOT EXISTS idx_behavior_logs_session
                    ON behavior_logs(session_id, timestamp);
                """)
                conn.commit()
        finally:
            self._release_connection(conn)

    def get_session(self, fingerprint_hash: str) -> Optional[VisitorSession]:
        """
        Retrieve a session by fingerprint hash.

        Returns:
            VisitorSession if found, None otherwise
        """
        conn = self._get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    SELECT id, fingerprint_hash, persona, confidence, mood,
                           device_type, consent_given, created_at, last_seen
                    FROM sessions
                    WHERE fingerprint_hash = %s
                """, (fingerprint_hash,))

                row = cur.fetchone()
                if not row:
                    return None

                return VisitorSession(
                    id=UUID(str(row[0])),
                    fingerprint_hash=row[1],
                    persona=row[2],
                    confidence=row[3],
                    mood=row[4],
                    device_type=row[5] or 'desktop',
                    consent_given=bool(row[6]),
                    created_at=row[7],
                    last_seen=row[8],
                )
        finally:
            self._release_connection(conn)

    def create_session(
        self, fingerprint_hash: str, device_type: str = 'desktop'
    ) -> VisitorSession:
        """
        Insert a new session and its empty aggregated behavior row.

        Returns:
            The stored VisitorSession
        """
        session = VisitorSession(
            fingerprint_hash=fingerprint_hash,
            device_type=device_type,
            consent_given=True,
        )
        conn = self._get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO sessions (
                        id, fingerprint_hash, device_type, consent_given,
                        created_at, last_seen
                    ) VALUES (%s, %s, %s, %s, %s, %s)
                """, (
                    str(session.id),
                    session.fingerprint_hash,
                    session.device_type,
                    session.consent_given,
                    session.created_at,
                    session.last_seen,
                ))
                cur.execute("""
                    INSERT INTO aggregated_behaviors (session_id, updated_at)
                    VALUES (%s, %s)
                """, (str(session.id), session.created_at))
                conn.commit()
                return session
        finally:
            self._release_connection(conn)

    def touch_session(self, session_id: UUID) -> None:
        conn = self._get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(
                    "UPDATE sessions SET last_seen = %s WHERE id = %s",
                    (_utcnow(), str(session_id))
                )
                conn.commit()
        finally:
            self._release_connection(conn)

    def get_behavior(self, session_id: UUID) -> Optional[AggregatedBehavior]:
        """
        Retrieve the aggregated behavior for a session.

        Returns:
            AggregatedBehavior if found, None otherwise
        """
        conn = self._get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(
                    f"SELECT {self._BEHAVIOR_COLUMNS} FROM aggregated_behaviors "
                    "WHERE session_id = %s",
                    (str(session_id),)
                )
                row = cur.fetchone()
                if not row:
                    return None

                names = [name.strip() for name in self._BEHAVIOR_COLUMNS.split(',')]
                record = dict(zip(names, row))
                record['session_id'] = UUID(str(record['session_id']))
                return AggregatedBehavior(**record)
        finally:
            self._release_connection(conn)

    def save_behavior(self, behavior: AggregatedBehavior) -> None:
        """Upsert the aggregated behavior row for a session."""
        conn = self._get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(f"""
                    INSERT INTO aggregated_behaviors ({self._BEHAVIOR_COLUMNS})
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s,
                            %s, %s, %s, %s, %s, %s, %s, %s)
                    ON CONFLICT (session_id) DO UPDATE SET
                        time_on_homepage = EXCLUDED.time_on_homepage,
                        scroll_depth = EXCLUDED.scroll_depth,
                        idle_time = EXCLUDED.idle_time,
                        mouse_heatmap_density = EXCLUDED.mouse_heatmap_density,
                        navigation_speed = EXCLUDED.navigation_speed,
                        clicked_resume = EXCLUDED.clicked_resume,
                        opened_design_showcase = EXCLUDED.opened_design_showcase,
                        opened_ai_intake_form = EXCLUDED.opened_ai_intake_form,
                        interacted_with_animations = EXCLUDED.interacted_with_animations,
                        opened_code_samples_count = EXCLUDED.opened_code_samples_count,
                        visited_projects_count = EXCLUDED.visited_projects_count,
                        played_demos_count = EXCLUDED.played_demos_count,
                        navigation_path = EXCLUDED.navigation_path,
                        hovered_keywords = EXCLUDED.hovered_keywords,
                        behavior_vector = EXCLUDED.behavior_vector,
                        updated_at = EXCLUDED.updated_at
                """, (
                    str(behavior.session_id),
                    behavior.time_on_homepage,
                    behavior.scroll_depth,
                    behavior.idle_time,
                    behavior.mouse_heatmap_density,
                    behavior.navigation_speed,
                    behavior.clicked_resume,
                    behavior.opened_design_showcase,
                    behavior.opened_ai_intake_form,
                    behavior.interacted_with_animations,
                    behavior.opened_code_samples_count,
                    behavior.visited_projects_count,
                    behavior.played_demos_count,
                    json.dumps(behavior.navigation_path),
                    json.dumps(behavior.hovered_keywords),
                    json.dumps(behavior.behavior_vector),
                    behavior.updated_at,
                ))
                conn.commit()
        finally:
            self._release_connection(conn)

    def append_events(self, session_id: UUID, events: List[BehaviorEvent]) -> None:
        """Insert raw events into behavior_logs."""
        if not events:
            return
        conn = self._get_connection()
        try:
            with conn.cursor() as cur:
                cur.executemany("""
                    INSERT INTO behavior_logs (session_id, event_type, data, timestamp)
                    VALUES (%s, %s, %s, %s)
                """, [
                    (
                        str(session_id),
                        event.type.value,
                        json.dumps(event.data.model_dump(mode='json', exclude_none=True)),
                        datetime.fromtimestamp(event.timestamp / 1000, tz=timezone.utc),
                    )
                    for event in events
                ])
                conn.commit()
        finally:
            self._release_connection(conn)

    def save_classification(
        self, session_id: UUID, classification: PersonaClassification
    ) -> None:
        conn = self._get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    UPDATE sessions
                    SET persona = %s, confidence = %s, mood = %s
                    WHERE id = %s
                """, (
                    classification.persona.value,
                    classification.confidence,
                    classification.mood.value,
                    str(session_id),
                ))
                conn.commit()
        finally:
            self._release_connection(conn)

    def save_vector(self, session_id: UUID, vector: BehaviorVector) -> None:
        conn = self._get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    UPDATE aggregated_behaviors
                    SET behavior_vector = %s, updated_at = %s
                    WHERE session_id = %s
                """, (json.dumps(vector.to_list()), _utcnow(), str(session_id)))
                conn.commit()
        finally:
            self._release_connection(conn)

    def purge_older_than(
        self, logs_cutoff: datetime, behavior_cutoff: datetime
    ) -> Tuple[int, int]:
        """
        Delete expired raw events and aggregated behavior.

        Args:
            logs_cutoff: behavior_logs rows older than this are removed
            behavior_cutoff: aggregated_behaviors rows last updated before this are removed

        Returns:
            (deleted log rows, deleted behavior rows)
        """
        conn = self._get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(
                    "DELETE FROM behavior_logs WHERE timestamp < %s",
                    (logs_cutoff,)
                )
                logs_deleted = cur.rowcount
                cur.execute(
                    "DELETE FROM aggregated_behaviors WHERE updated_at < %s",
                    (behavior_cutoff,)
                )
                behaviors_deleted = cur.rowcount
                conn.commit()
                return logs_deleted, behaviors_deleted
        finally:
            self._release_connection(conn)

    def close(self) -> None:
        """Close all connections in the pool."""
        with self._pool_lock:
            if self._pool:
                self._pool.closeall()
                self._pool = None


def connect(database_url: str) -> PostgresSessionStore:
    """Create a Postgres store and make sure its tables exist."""
    store = PostgresSessionStore(database_url)
    store.init_schema()
    return store
