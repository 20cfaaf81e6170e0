from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Optional

import yaml

TRIP_BLOCK_TOKEN = "{{tripBlock}}"
TRANSACTION_BLOCK_TOKEN = "{{transactionBlock}}"


@dataclass(frozen=True)
class PromptTemplate:
    name: str
    model: str
    temperature: float
    max_tokens: int
    user_template: str
    system: Optional[str] = None


@dataclass(frozen=True)
class TripCandidate:
    id: str
    name: str
    start_date: str
    end_date: str
    currency: str = "USD"
    destination: Optional[str] = None


@dataclass(frozen=True)
class TransactionCandidate:
    id: str
    amount: float  # absolute value; direction is not a matching signal
    currency: str
    merchant: str
    description: str
    posted_at: str
    location: tuple = ()


@lru_cache(maxsize=8)
def load_prompt_template(path: str) -> PromptTemplate:
    """Parse a *.prompt.yml file. Raises when the file or its user message is missing."""
    with open(path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}

    messages = cfg.get("messages") or []
    user = next((m for m in messages if m.get("role") == "user"), None)
    if not user or not user.get("content"):
        raise ValueError(f"User message not found in prompt config {path}")
    system = next((m.get("content") for m in messages if m.get("role") == "system"), None)

    params = cfg.get("modelParameters") or {}
    return PromptTemplate(
        name=str(cfg.get("name") or "trip-linking"),
        model=str(cfg.get("model") or ""),
        temperature=float(params.get("temperature", 0.1)),
        max_tokens=int(params.get("max_tokens", 2048)),
        user_template=str(user["content"]),
        system=system,
    )


def trip_line(trip: TripCandidate) -> str:
    destination = trip.destination or "Unknown Destination"
    return (
        f"- [{trip.id}] {trip.name} ({destination}) "
        f"from {trip.start_date} to {trip.end_date} in {trip.currency}"
    )


def transaction_line(txn: TransactionCandidate) -> str:
    location = f" | location: {', '.join(txn.location)}" if txn.location else ""
    return (
        f"- [{txn.id}] {txn.posted_at} • {txn.currency} {abs(txn.amount):.2f} "
        f"@ {txn.merchant}{location} | {txn.description}"
    )


def render_prompt(
    template: PromptTemplate,
    trips: Iterable[TripCandidate],
    transactions: Iterable[TransactionCandidate],
) -> str:
    trip_block = "\n".join(trip_line(t) for t in trips)
    transaction_block = "\n".join(transaction_line(t) for t in transactions)
    return (
        template.user_template
        .replace(TRIP_BLOCK_TOKEN, trip_block or "None")
        .replace(TRANSACTION_BLOCK_TOKEN, transaction_block or "None")
    )
