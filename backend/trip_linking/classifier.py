from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from typing import List, Literal, Optional

from llm_providers import complete_text

from .prompt import PromptTemplate

Decision = Literal["link", "suggest", "skip"]

_CODE_FENCE = re.compile(r"```[\w+-]*\s*([\s\S]*?)```")


@dataclass(frozen=True)
class TripLinkDecision:
    """One raw per-transaction verdict, before threshold resolution."""

    transaction_id: str
    decision: Decision
    trip_id: Optional[str]
    confidence: float
    reasoning: Optional[str] = None


def request_decisions(
    prompt: str,
    template: PromptTemplate,
    *,
    provider: str,
    model: Optional[str] = None,
    timeout: Optional[float] = None,
) -> str:
    """One synchronous classifier call; returns the model's raw text."""
    return complete_text(
        provider,
        prompt,
        system=template.system,
        model=model or template.model or None,
        max_tokens=template.max_tokens,
        temperature=template.temperature,
        timeout=timeout,
    )


def extract_json_block(text: str) -> Optional[str]:
    """
    Pull the JSON payload out of free-form model output: a fenced code block
    wins, otherwise the span from the first "{" to the last "}".
    """
    if not text or not text.strip():
        return None
    text = text.strip()

    fence = _CODE_FENCE.search(text)
    if fence and fence.group(1).strip():
        return fence.group(1).strip()

    first = text.find("{")
    last = text.rfind("}")
    if first != -1 and last > first:
        return text[first:last + 1]
    return None


def _coerce_confidence(value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    value = float(value)
    if math.isnan(value):
        return 0.0
    return value


def coerce_entry(entry) -> Optional[TripLinkDecision]:
    if not isinstance(entry, dict) or not entry.get("transactionId"):
        return None
    decision = entry.get("decision")
    if decision not in ("link", "suggest"):
        decision = "skip"
    trip_id = entry.get("tripId")
    reasoning = entry.get("reasoning")
    return TripLinkDecision(
        transaction_id=str(entry["transactionId"]),
        decision=decision,
        trip_id=str(trip_id) if trip_id else None,
        confidence=_coerce_confidence(entry.get("confidence")),
        reasoning=str(reasoning) if reasoning else None,
    )


def parse_decisions(text: str) -> List[TripLinkDecision]:
    """
    Decode the classifier reply. Anything unusable (no JSON, malformed JSON,
    no "results" list) yields no decisions rather than an error.
    """
    payload = extract_json_block(text)
    if payload is None:
        return []
    try:
        parsed = json.loads(payload)
    except json.JSONDecodeError:
        return []
    if not isinstance(parsed, dict) or not isinstance(parsed.get("results"), list):
        return []

    decisions = []
    for entry in parsed["results"]:
        decision = coerce_entry(entry)
        if decision is not None:
            decisions.append(decision)
    return decisions
