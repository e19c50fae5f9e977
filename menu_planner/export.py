"""Shopping list formatting and export in various formats."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from .config import get_currency_symbol
from .shopping import ShoppingLine


def format_amount(amount: float) -> str:
    """Format a quantity with at most three decimals (e.g. 1.2, 5.409, 400)."""
    if amount == int(amount):
        return str(int(amount))
    return f"{amount:.3f}".rstrip("0").rstrip(".")


def format_catalog_price(price: float) -> str:
    """Format a price per unit; tiny prices keep four decimals so they don't show as 0.00."""
    if 0 < price < 0.01:
        return f"{price:.4f}"
    return f"{price:.2f}"


def format_price(price: float | None) -> str:
    """Format a line price with the currency symbol, or "-" if unpriced."""
    if price is None:
        return "-"
    return f"{get_currency_symbol()}{price:.2f}"


def calculate_total_cost(lines: list[ShoppingLine]) -> float:
    """Sum the prices of all priced lines."""
    return round(sum(line.price for line in lines if line.price is not None), 2)


def _purchase_str(line: ShoppingLine) -> str:
    if line.num_units and line.type_of_unit:
        return f"{line.num_units} x {line.type_of_unit}"
    return "-"


def export_to_json(
    lines: list[ShoppingLine],
    filepath: str | Path,
    *,
    title: str | None = None,
    servings: int | None = None,
) -> None:
    """
    Export shopping list to JSON format.

    Args:
        lines: Shopping lines
        filepath: Output file path
        title: Optional list title
        servings: Servings the list was generated for
    """
    data: dict[str, Any] = {
        "exported_at": datetime.now().isoformat(),
        "title": title,
        "servings": servings,
        "items": [line.to_dict() for line in lines],
        "summary": {
            "total_items": len(lines),
            "priced": sum(1 for line in lines if line.price is not None),
            "unpriced": sum(1 for line in lines if line.price is None),
            "estimated_total": calculate_total_cost(lines),
        },
    }

    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def export_to_markdown(
    lines: list[ShoppingLine],
    filepath: str | Path,
    *,
    title: str | None = None,
    servings: int | None = None,
) -> None:
    """
    Export shopping list to Markdown format.

    Args:
        lines: Shopping lines
        filepath: Output file path
        title: Optional list title
        servings: Servings the list was generated for
    """
    out: list[str] = []

    # Header
    out.append(f"# {title or 'Shopping List'}")
    out.append("")
    out.append(f"*Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}*")
    out.append("")

    # Summary
    priced = sum(1 for line in lines if line.price is not None)
    out.append("## Summary")
    out.append("")
    if servings is not None:
        out.append(f"- **Servings:** {servings}")
    out.append(f"- **Items:** {len(lines)}")
    out.append(f"- **Priced:** {priced}")
    out.append(f"- **Estimated Total:** {format_price(calculate_total_cost(lines))}")
    out.append("")

    # Items
    out.append("## Items")
    out.append("")
    out.append("| Ingredient | Total | Unit | Buy | Price |")
    out.append("| --- | ---: | --- | --- | ---: |")
    for line in lines:
        price_str = format_price(line.price)
        if line.is_manual_price:
            price_str += " *"
        out.append(
            f"| {line.display_name} | {format_amount(line.total_amount)} | {line.unit} "
            f"| {_purchase_str(line)} | {price_str} |"
        )
    out.append("")

    if any(line.is_manual_price for line in lines):
        out.append("\\* price entered manually")
        out.append("")

    with open(filepath, "w", encoding="utf-8") as f:
        f.write("\n".join(out))


def export_shopping_list(
    lines: list[ShoppingLine],
    filepath: str | Path,
    *,
    title: str | None = None,
    servings: int | None = None,
    format: str | None = None,
) -> str:
    """
    Export shopping list to file.

    Format is auto-detected from file extension if not specified.

    Args:
        lines: Shopping lines
        filepath: Output file path
        title: Optional list title
        servings: Servings the list was generated for
        format: Output format (json, md) - auto-detected if None

    Returns:
        The format used for export

    Raises:
        ValueError: If the format is not supported
    """
    path = Path(filepath)

    # Auto-detect format from extension
    if format is None:
        format_map = {
            ".json": "json",
            ".md": "md",
            ".markdown": "md",
        }
        format = format_map.get(path.suffix.lower(), "md")

    if format == "json":
        export_to_json(lines, path, title=title, servings=servings)
    elif format in ("md", "markdown"):
        export_to_markdown(lines, path, title=title, servings=servings)
        format = "md"
    else:
        raise ValueError(f"Unsupported format: {format}")

    return format
