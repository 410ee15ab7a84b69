"""
===============================================================================
DETECTOR: Contact-Leak Scanner
===============================================================================

Qué es:
    Escanea mensajes (`message.sent`) buscando teléfonos o emails. Compartir
    datos de contacto saltea la intermediación de la plataforma, por eso un
    solo match alcanza para generar un finding `high` y una task de revisión.

Reglas:
    - Data-driven (_ContactPattern): agregar un patrón no cambia la lógica.
    - Orden determinista: teléfonos primero, luego emails.
    - El finding guarda solo un extracto acotado del mensaje.
===============================================================================
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import List, Tuple

from ...domain.entities import (
    Event,
    EventType,
    Finding,
    Severity,
    Task,
    TaskKind,
)
from .base import DetectorConfig, DetectorOutcome, InvalidPayloadError, optional_id

LABEL = "Potential Contact Information Leak"


@dataclass(frozen=True, slots=True)
class _ContactPattern:
    slug: str
    regex: re.Pattern[str]


_PATTERNS: Tuple[_ContactPattern, ...] = (
    _ContactPattern(
        slug="phone",
        regex=re.compile(r"(?:\+?1[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}"),
    ),
    _ContactPattern(
        slug="email",
        regex=re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}"),
    ),
)


def scan_contact_details(text: str) -> Tuple[List[str], List[str]]:
    """
    Devuelve (matches, slugs de patrones que matchearon).

    matches conserva el orden de aparición dentro de cada patrón.
    """
    detected: List[str] = []
    kinds: List[str] = []
    for pattern in _PATTERNS:
        found = [m.group(0) for m in pattern.regex.finditer(text)]
        if found:
            detected.extend(found)
            kinds.append(pattern.slug)
    return detected, kinds


def excerpt(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "..."


class ContactLeakDetector:
    detector_id = "contact_leak"
    event_types = (EventType.MESSAGE_SENT.value,)

    def __init__(self, config: DetectorConfig | None = None) -> None:
        self._config = config or DetectorConfig()

    def applies_to(self, event: Event) -> bool:
        # Solo mensajes con contenido; el tipo se valida en evaluate().
        content = event.payload.get("content")
        return content is not None and content != ""

    def evaluate(self, event: Event, *, now: datetime) -> DetectorOutcome:
        content = event.payload.get("content")
        if not isinstance(content, str):
            raise InvalidPayloadError(
                "content", f"must be a string, got {type(content).__name__}"
            )

        detected, kinds = scan_contact_details(content)
        if not detected:
            return DetectorOutcome.empty()

        message_id = optional_id(event.payload, "message_id")

        finding = Finding(
            event_id=event.id,
            severity=Severity.HIGH,
            label=LABEL,
            details={
                "detected": detected,
                "patterns": kinds,
                "message_content": excerpt(content, self._config.contact_excerpt_chars),
            },
            linked_object_type="message",
            linked_object_id=message_id,
        )
        task = Task(
            kind=TaskKind.REVIEW,
            summary="Review message for contact information leak",
            suggested_action={
                "action": "review_message",
                "message_id": message_id,
                "reason": "potential_contact_leak",
            },
            event_id=event.id,
            assignee=self._config.default_assignee,
        )
        return DetectorOutcome(findings=(finding,), tasks=(task,))
