"""
In-Memory read models (quotes / rfqs) for testing and development.

NOT FOR PRODUCTION USE - data is lost on restart.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import uuid4

from ....domain.entities import OpenRequest


@dataclass(frozen=True)
class _QuoteRow:
    id: str
    aircraft_class: str
    route: str
    price: float
    created_at: datetime


@dataclass(frozen=True)
class _RequestRow:
    request: OpenRequest
    created_at: datetime
    status: str


class InMemoryHistoricalQueryService:
    def __init__(self) -> None:
        self._quotes: List[_QuoteRow] = []
        self._requests: Dict[str, _RequestRow] = {}
        self._lock = threading.Lock()

    def add_quote(
        self,
        *,
        aircraft_class: str,
        route: str,
        price: float,
        created_at: Optional[datetime] = None,
        quote_id: Optional[str] = None,
    ) -> str:
        row = _QuoteRow(
            id=quote_id or str(uuid4()),
            aircraft_class=aircraft_class,
            route=route,
            price=float(price),
            created_at=created_at or datetime.now(timezone.utc),
        )
        with self._lock:
            self._quotes.append(row)
        return row.id

    def add_request(
        self,
        request: OpenRequest,
        *,
        created_at: Optional[datetime] = None,
        status: str = "open",
    ) -> None:
        with self._lock:
            self._requests[request.id] = _RequestRow(
                request=request,
                created_at=created_at or datetime.now(timezone.utc),
                status=status,
            )

    def query_historical_prices(
        self,
        aircraft_class: str,
        route: str,
        *,
        since: datetime,
        limit: int,
        exclude_quote_id: Optional[str] = None,
    ) -> List[float]:
        if limit <= 0:
            return []
        with self._lock:
            rows = [
                q
                for q in self._quotes
                if q.aircraft_class == aircraft_class
                and q.route == route
                and q.created_at >= since
                and (exclude_quote_id is None or q.id != exclude_quote_id)
            ]
        # Más recientes primero (igual que ORDER BY created_at DESC)
        rows.sort(key=lambda q: q.created_at, reverse=True)
        return [q.price for q in rows[:limit]]

    def query_request_created_at(self, request_id: str) -> Optional[datetime]:
        with self._lock:
            row = self._requests.get(request_id)
        return row.created_at if row else None

    def query_open_requests(
        self,
        aircraft_class: str,
        *,
        departure_from: datetime,
        departure_to: datetime,
        limit: int,
    ) -> List[OpenRequest]:
        if limit <= 0:
            return []
        with self._lock:
            matches = [
                row.request
                for row in self._requests.values()
                if row.status == "open"
                and row.request.aircraft_class == aircraft_class
                and departure_from <= row.request.departure_at <= departure_to
            ]
        matches.sort(key=lambda r: (r.departure_at, r.id))
        return matches[:limit]
