from __future__ import annotations

from typing import Any

PricingTable = dict[str, dict[str, tuple[float, float]]]

# USD per million (input, output) tokens.
DEFAULT_PRICING: PricingTable = {
  "openrouter": {
    "anthropic/claude-3.5-haiku": (0.8, 4.0),
    "anthropic/claude-3.5-sonnet": (3.0, 15.0),
    "anthropic/claude-3-haiku": (0.25, 1.25),
    "openai/gpt-4o": (2.5, 10.0),
    "openai/gpt-4o-mini": (0.15, 0.6),
    "google/gemini-flash-1.5": (0.075, 0.3),
  }
}


def calculate_total_cost(usage: list[dict[str, Any]], pricing_table: PricingTable | None = None, provider: str | None = None) -> float:
  """Estimate total cost based on token usage. Unknown models cost nothing."""
  pricing = DEFAULT_PRICING if pricing_table is None else pricing_table
  fallback_provider = str(provider or "openrouter").strip().lower()

  total = 0.0
  for entry in usage:
    entry_provider = str(entry.get("provider") or fallback_provider).strip().lower()
    model = str(entry.get("model") or "").strip()
    price_in, price_out = pricing.get(entry_provider, {}).get(model, (0.0, 0.0))

    in_tokens = int(entry.get("prompt_tokens") or 0)
    out_tokens = int(entry.get("completion_tokens") or 0)

    call_cost = (in_tokens / 1_000_000) * price_in
    call_cost += (out_tokens / 1_000_000) * price_out

    entry["input_tokens"] = in_tokens
    entry["output_tokens"] = out_tokens
    entry["estimated_cost"] = round(call_cost, 6)

    total += call_cost

  return round(total, 6)
