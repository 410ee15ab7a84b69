"""
============================================================
TARJETA CRC - infrastructure/repositories/postgres/historical_query.py
============================================================
Class: PostgresHistoricalQueryService

Responsibilities:
  - Consultas de solo lectura sobre read models upstream (quotes, rfqs)
    que alimentan los baselines de los detectores.

Collaborators:
  - domain.entities.OpenRequest
  - PostgresRepositoryBase

Constraints / Notes:
  - IDs upstream se comparan como texto (id::text): el payload de los
    eventos trae IDs serializados.
  - Precios NUMERIC llegan como Decimal: se convierten a float.
============================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from ....domain.entities import OpenRequest
from .base import PostgresRepositoryBase


class PostgresHistoricalQueryService(PostgresRepositoryBase):
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

        conditions = [
            "aircraft_class = %s",
            "route = %s",
            "created_at >= %s",
            "price IS NOT NULL",
        ]
        params: list[object] = [aircraft_class, route, since]
        if exclude_quote_id:
            conditions.append("id::text <> %s")
            params.append(exclude_quote_id)

        rows = self._fetchall(
            query=f"""
                SELECT price
                FROM quotes
                WHERE {' AND '.join(conditions)}
                ORDER BY created_at DESC
                LIMIT %s
            """,
            params=[*params, limit],
            error_message="PostgresHistoricalQueryService: Failed to query prices",
            extra={"aircraft_class": aircraft_class, "route": route, "limit": limit},
        )
        return [float(price) for (price,) in rows]

    def query_request_created_at(self, request_id: str) -> Optional[datetime]:
        rows = self._fetchall(
            query="SELECT created_at FROM rfqs WHERE id::text = %s",
            params=[request_id],
            error_message="PostgresHistoricalQueryService: Failed to query rfq",
            extra={"request_id": request_id},
        )
        return rows[0][0] if rows else None

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

        rows = self._fetchall(
            query="""
                SELECT id::text, aircraft_class, departure_date, origin, destination,
                       origin_lat, origin_lon
                FROM rfqs
                WHERE aircraft_class = %s
                  AND status = 'open'
                  AND departure_date >= %s
                  AND departure_date <= %s
                ORDER BY departure_date ASC, id ASC
                LIMIT %s
            """,
            params=[aircraft_class, departure_from, departure_to, limit],
            error_message="PostgresHistoricalQueryService: Failed to query open rfqs",
            extra={"aircraft_class": aircraft_class, "limit": limit},
        )
        return [
            OpenRequest(
                id=request_id,
                aircraft_class=klass,
                departure_at=departure_at,
                origin=origin,
                destination=destination,
                origin_lat=float(lat) if lat is not None else None,
                origin_lon=float(lon) if lon is not None else None,
            )
            for request_id, klass, departure_at, origin, destination, lat, lon in rows
        ]
