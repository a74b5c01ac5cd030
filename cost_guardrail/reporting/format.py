from typing import Dict, List

from ..config import SUPPORTED_CURRENCY
from ..pricing.units import format_quantity


def _format_currency(value: float, currency: str) -> str:
    return f"{value:,.2f} {currency}"


def _budget_ratio(total: float, budget: float) -> str:
    if not budget:
        return "0.00%"
    ratio = (total / budget) * 100.0
    return f"{ratio:.2f}%"


def render_totals_table(result: Dict) -> str:
    currency = result.get("currency", SUPPORTED_CURRENCY)
    total = result.get("total_cost", 0.0)
    budget = result.get("budget_amount", 0.0)
    status = "🚨 breached" if result.get("breached") else "✅ within budget"
    if result.get("breached") and result.get("disabled"):
        status += " (billing disabled)"
    rows = [
        "| Resource | Cost |",
        "|---|---|",
    ]
    for cost in result.get("costs", []):
        rows.append(
            "| {name} | {cost} |".format(
                name=cost.get("resource") or "-",
                cost=_format_currency(cost.get("cost", 0.0), currency),
            )
        )
    rows.append(f"| **Total** | **{_format_currency(total, currency)}** |")
    rows.append(f"| Budget | {_format_currency(budget, currency)} |")
    rows.append(f"| Used | {_budget_ratio(total, budget)} ({status}, mode: {result.get('mode', '-')}) |")
    return "\n".join(rows)


def render_lines_table(result: Dict) -> str:
    currency = result.get("currency", SUPPORTED_CURRENCY)
    rows = [
        "| Resource | Dimension | Used | Free allowance | Paid | Unit price | Cost |",
        "|---|---|---|---|---|---|---|",
    ]
    for cost in result.get("costs", []):
        for line in cost.get("lines", []):
            unit = line.get("unit", "")
            allowance = line.get("free_allowance")
            rows.append(
                "| {res} | {label} | {used} | {free} | {paid} | {price} | {cost} |".format(
                    res=cost.get("resource") or "-",
                    label=line.get("label") or line.get("key") or "-",
                    used=format_quantity(line.get("used", 0), unit),
                    free="-" if allowance is None else format_quantity(allowance, unit),
                    paid=format_quantity(line.get("paid", 0), unit),
                    price=f"{line.get('unit_price', 0.0)} {currency}/{unit}",
                    cost=_format_currency(line.get("cost", 0.0), currency),
                )
            )
    return "\n".join(rows)


def render_report(result: Dict) -> str:
    sections: List[str] = [
        "## Usage cost vs budget",
        "",
        render_totals_table(result),
        "",
        "## Breakdown",
        "",
        render_lines_table(result),
    ]
    return "\n".join(sections)
