"""Cron derivation for schedule triggers from extracted time entities."""

import re
from typing import List, Optional

from croniter import croniter

from autoflow_ai.models.entities import Entity, EntityType


_CLOCK = re.compile(r"^(?:às|as)\s*(\d{1,2})(?::(\d{2})|h(\d{2})?)?$", re.IGNORECASE)
_FREQUENCY = re.compile(r"^(?:todo|toda|a cada)\s*(dia|semana|m[eê]s|hora)$", re.IGNORECASE)
_INTERVAL = re.compile(r"^(\d+)\s*(horas?|minutos?)$", re.IGNORECASE)


def _clock(values: List[str]) -> Optional[tuple]:
    for value in values:
        match = _CLOCK.match(value.strip())
        if match:
            hour = int(match.group(1))
            minute = int(match.group(2) or match.group(3) or 0)
            if hour < 24 and minute < 60:
                return hour, minute
    return None


def _frequency(values: List[str]) -> Optional[str]:
    for value in values:
        match = _FREQUENCY.match(value.strip())
        if match:
            return match.group(1).lower().replace("mês", "mes")
    return None


def _interval(values: List[str]) -> Optional[str]:
    for value in values:
        match = _INTERVAL.match(value.strip())
        if not match:
            continue
        amount = int(match.group(1))
        unit = match.group(2).lower()
        if unit.startswith("minuto") and 1 <= amount < 60:
            return f"*/{amount} * * * *"
        if unit.startswith("hora") and 1 <= amount < 24:
            return f"0 */{amount} * * *"
    return None


def derive_cron(entities: List[Entity]) -> Optional[str]:
    """
    Build a cron expression from the time entities of one utterance.

    "todo dia às 9h" -> "0 9 * * *", "toda semana às 8:30" -> "30 8 * * 1",
    "a cada 15 minutos" -> "*/15 * * * *". Returns None when the entities do
    not pin down a schedule (e.g. a frequency with no clock time).
    """
    values = [e.value for e in entities if e.type == EntityType.TIME]
    if not values:
        return None

    clock = _clock(values)
    frequency = _frequency(values)

    if frequency == "hora":
        minute = clock[1] if clock else 0
        expression = f"{minute} * * * *"
    elif clock is not None:
        hour, minute = clock
        if frequency == "semana":
            expression = f"{minute} {hour} * * 1"
        elif frequency == "mes":
            expression = f"{minute} {hour} 1 * *"
        else:
            expression = f"{minute} {hour} * * *"
    else:
        expression = _interval(values)

    if expression is None or not croniter.is_valid(expression):
        return None
    return expression
