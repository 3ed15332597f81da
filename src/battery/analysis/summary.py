"""Summaries of simulation results for display or JSON output."""

from ..models import AggregateBucket, AggregateResults


def net_cost(bucket: AggregateBucket) -> float:
    """Grid purchases minus feed-in earnings, in cents."""
    return bucket.consumption_cost - bucket.generation_earnings


def bucket_to_dict(bucket: AggregateBucket) -> dict:
    return {
        "consumed_kwh": round(bucket.consumed_energy, 2),
        "consumption_cost_dollars": round(bucket.consumption_cost / 100, 2),
        "generated_kwh": round(bucket.generated_energy, 2),
        "generation_earnings_dollars": round(bucket.generation_earnings / 100, 2),
        "net_cost_dollars": round(net_cost(bucket) / 100, 2),
        "battery_output_kwh": round(bucket.total_battery_output, 2),
        "days_reached_full_charge": bucket.days_reached_full_charge,
    }


def results_to_dict(results: AggregateResults) -> dict:
    """JSON-friendly view of monthly and yearly buckets."""
    return {
        "per_month": {key: bucket_to_dict(b) for key, b in sorted(results.per_month.items())},
        "per_year": {key: bucket_to_dict(b) for key, b in sorted(results.per_year.items())},
    }


def _savings(baseline: dict[str, AggregateBucket], candidate: dict[str, AggregateBucket]) -> dict:
    savings = {}
    for key in sorted(baseline):
        if key not in candidate:
            continue
        baseline_net = net_cost(baseline[key]) / 100
        candidate_net = net_cost(candidate[key]) / 100
        savings[key] = {
            "savings_dollars": round(baseline_net - candidate_net, 2),
            "baseline_net_dollars": round(baseline_net, 2),
            "candidate_net_dollars": round(candidate_net, 2),
        }
    return savings


def compare_results(baseline: AggregateResults, candidate: AggregateResults) -> dict:
    """Savings of candidate over baseline for every period both cover."""
    return {
        "per_month": _savings(baseline.per_month, candidate.per_month),
        "per_year": _savings(baseline.per_year, candidate.per_year),
    }


def _bucket_line(key: str, bucket: AggregateBucket) -> str:
    consumed = bucket.consumption_cost / 100
    generated = bucket.generation_earnings / 100
    return (
        f"{key}: ${consumed - generated:.2f} "
        f"({bucket.consumed_energy:.2f}kWh consumed (${consumed:.2f}) - "
        f"{bucket.generated_energy:.2f}kWh generated (${generated:.2f}))"
    )


def format_results_text(title: str, results: AggregateResults) -> str:
    """Format one scenario's results as human-readable text."""
    lines = [f"## Results: {title}", "", "Per Month"]
    for key, bucket in sorted(results.per_month.items()):
        lines.append(
            f"{_bucket_line(key, bucket)} "
            f"[{bucket.days_reached_full_charge} days reached max battery]"
        )

    lines.extend(["", "Per Year"])
    for key, bucket in sorted(results.per_year.items()):
        lines.append(_bucket_line(key, bucket))

    return "\n".join(lines)


def format_comparison_text(
    title: str, baseline: AggregateResults, candidate: AggregateResults
) -> str:
    """Format the savings between two scenarios as text."""
    comparison = compare_results(baseline, candidate)
    lines = [f"## Comparison: {title}", "", "Per Month"]
    for key, s in comparison["per_month"].items():
        lines.append(
            f"{key}: ${s['savings_dollars']:.2f} savings "
            f"(${s['baseline_net_dollars']:.2f} - ${s['candidate_net_dollars']:.2f})"
        )

    lines.extend(["", "Per Year"])
    for key, s in comparison["per_year"].items():
        lines.append(
            f"{key}: ${s['savings_dollars']:.2f} savings "
            f"(${s['baseline_net_dollars']:.2f} - ${s['candidate_net_dollars']:.2f})"
        )

    return "\n".join(lines)
