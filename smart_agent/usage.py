"""Usage normalization and accounting.

Converts provider-specific usage objects into one canonical shape and folds
per-request usage into per-model running totals.
"""

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class NormalizedUsage:
    """Canonical token usage for one model request."""

    input: int = 0
    output: int = 0
    total: int = 0
    cached_input: int = 0


@dataclass
class UsageTotals:
    input: int = 0
    output: int = 0
    total: int = 0
    cached_input: int = 0

    def add(self, usage: NormalizedUsage) -> None:
        self.input += usage.input
        self.output += usage.output
        self.total += usage.total
        self.cached_input += usage.cached_input


@dataclass
class UsageEntry:
    """One model request in the usage log."""

    id: str
    model_name: str
    usage: Any  # raw provider usage, unmodified
    normalized: NormalizedUsage
    timestamp: str
    turn: int

    @property
    def cached_input(self) -> int:
        return self.normalized.cached_input


def _as_dict(raw: Any) -> dict[str, Any] | None:
    if raw is None:
        return None
    if isinstance(raw, dict):
        return raw
    if hasattr(raw, "model_dump"):
        return raw.model_dump()
    if hasattr(raw, "__dict__"):
        return {k: v for k, v in vars(raw).items() if not k.startswith("_")}
    return None


def _int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def normalize_usage(raw: Any) -> NormalizedUsage | None:
    """Normalize a provider usage object.

    Recognized shapes:
        - OpenAI: prompt_tokens / completion_tokens / total_tokens,
          prompt_tokens_details.cached_tokens
        - Anthropic: input_tokens / output_tokens, cache_read_input_tokens
        - LangChain usage_metadata: input_tokens / output_tokens / total_tokens,
          input_token_details.cache_read
        - Gemini: promptTokenCount / candidatesTokenCount / totalTokenCount,
          cachedContentTokenCount

    Returns:
        NormalizedUsage, or None when nothing recognizable is present
    """
    data = _as_dict(raw)
    if not data:
        return None

    if "prompt_tokens" in data or "completion_tokens" in data:
        details = data.get("prompt_tokens_details") or {}
        input_tokens = _int(data.get("prompt_tokens"))
        output_tokens = _int(data.get("completion_tokens"))
        cached = _int(details.get("cached_tokens") if isinstance(details, dict) else 0)
        total = _int(data.get("total_tokens")) or input_tokens + output_tokens
    elif "input_tokens" in data or "output_tokens" in data:
        details = data.get("input_token_details") or {}
        input_tokens = _int(data.get("input_tokens"))
        output_tokens = _int(data.get("output_tokens"))
        cached = _int(data.get("cache_read_input_tokens")) or _int(
            details.get("cache_read") if isinstance(details, dict) else 0
        )
        total = _int(data.get("total_tokens")) or input_tokens + output_tokens
    elif "promptTokenCount" in data or "candidatesTokenCount" in data:
        input_tokens = _int(data.get("promptTokenCount"))
        output_tokens = _int(data.get("candidatesTokenCount"))
        cached = _int(data.get("cachedContentTokenCount"))
        total = _int(data.get("totalTokenCount")) or input_tokens + output_tokens
    else:
        return None

    return NormalizedUsage(
        input=input_tokens, output=output_tokens, total=total, cached_input=cached
    )


def extract_raw_usage(message: dict[str, Any] | None, model: Any = None) -> Any:
    """Find the raw usage object on a model response (or the model's last usage)."""
    if message:
        usage = message.get("usage")
        if usage:
            return usage
        metadata = message.get("response_metadata") or {}
        if isinstance(metadata, dict):
            usage = metadata.get("token_usage") or metadata.get("usage")
            if usage:
                return usage
        usage = message.get("usage_metadata")
        if usage:
            return usage
    return getattr(model, "last_usage", None)


@dataclass
class UsageLog:
    """Append-only per-request log plus per-model totals."""

    per_request: list[UsageEntry] = field(default_factory=list)
    totals: dict[str, UsageTotals] = field(default_factory=dict)

    def record(self, model_name: str, raw_usage: Any, turn: int) -> UsageEntry | None:
        """Append a request entry and fold it into the totals.

        Returns None (and records nothing) when the usage is not recognizable.
        """
        normalized = normalize_usage(raw_usage)
        if normalized is None:
            return None

        entry = UsageEntry(
            id=uuid.uuid4().hex,
            model_name=model_name,
            usage=raw_usage,
            normalized=normalized,
            timestamp=datetime.now(timezone.utc).isoformat(),
            turn=turn,
        )
        self.per_request.append(entry)
        self.totals.setdefault(model_name, UsageTotals()).add(normalized)
        return entry

    def copy(self) -> "UsageLog":
        return UsageLog(
            per_request=list(self.per_request),
            totals={k: UsageTotals(**asdict(v)) for k, v in self.totals.items()},
        )

    def recompute_totals(self) -> dict[str, UsageTotals]:
        """Fold per_request entries from scratch."""
        totals: dict[str, UsageTotals] = {}
        for entry in self.per_request:
            totals.setdefault(entry.model_name, UsageTotals()).add(entry.normalized)
        return totals

    def to_dict(self) -> dict[str, Any]:
        return {
            "per_request": [
                {
                    "id": e.id,
                    "model_name": e.model_name,
                    "usage": _as_dict(e.usage) or e.usage,
                    "normalized": asdict(e.normalized),
                    "timestamp": e.timestamp,
                    "turn": e.turn,
                    "cached_input": e.cached_input,
                }
                for e in self.per_request
            ],
            "totals": {k: asdict(v) for k, v in self.totals.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "UsageLog":
        if not data:
            return cls()
        log = cls()
        for item in data.get("per_request", []):
            normalized = item.get("normalized")
            log.per_request.append(
                UsageEntry(
                    id=item.get("id") or uuid.uuid4().hex,
                    model_name=item.get("model_name", "unknown"),
                    usage=item.get("usage"),
                    normalized=(
                        NormalizedUsage(**normalized)
                        if normalized
                        else normalize_usage(item.get("usage")) or NormalizedUsage()
                    ),
                    timestamp=item.get("timestamp", ""),
                    turn=item.get("turn", 0),
                )
            )
        log.totals = log.recompute_totals()
        return log
