"""CLI entry point for Menu Planner."""

from pathlib import Path
from typing import NoReturn

import click

from . import __version__
from .catalog import InvalidInputError
from .config import get_log_level, get_state_file
from .export import (
    calculate_total_cost,
    export_shopping_list,
    format_amount,
    format_catalog_price,
    format_price,
)
from .log import configure_logging
from .shopping import ShoppingLine, on_manual_price_entered, refresh_prices, update_line
from .state import PlannerError, PlannerState, load_state, save_state
from .units import ALL_UNITS, convert

UNIT_CHOICE = click.Choice(ALL_UNITS, case_sensitive=False)


def _state_file(ctx: click.Context) -> Path:
    return ctx.obj["state_file"]


def _load(ctx: click.Context) -> PlannerState:
    return load_state(_state_file(ctx))


def _save(ctx: click.Context, state: PlannerState) -> None:
    save_state(state, _state_file(ctx))


def _fail(message: str) -> NoReturn:
    click.echo(f"✗ {message}", err=True)
    raise SystemExit(1)


def display_shopping_list(lines: list[ShoppingLine], servings: int) -> None:
    """Display a shopping list in a formatted way."""
    click.echo()
    click.echo("=" * 72)
    click.echo(f"SHOPPING LIST ({servings} servings)")
    click.echo("=" * 72)

    if not lines:
        click.echo("\nNothing to buy. Add ingredients with: menu-planner ingredient add")
        click.echo()
        return

    click.echo(f"{'Ingredient':<28}{'Total':>10}  {'Unit':<12}{'Buy':<14}{'Price':>8}")
    click.echo("-" * 72)
    for line in lines:
        buy = f"{line.num_units} x {line.type_of_unit}" if line.num_units else "-"
        price = format_price(line.price)
        if line.is_manual_price:
            price += "*"
        click.echo(
            f"{line.display_name[:27]:<28}{format_amount(line.total_amount):>10}  "
            f"{line.unit:<12}{buy[:13]:<14}{price:>8}"
        )

    priced = sum(1 for line in lines if line.price is not None)
    click.echo("-" * 72)
    click.echo(f"Items: {len(lines)} | Priced: {priced} | Unpriced: {len(lines) - priced}")
    click.echo(f"Estimated total: {format_price(calculate_total_cost(lines))}")
    if any(line.is_manual_price for line in lines):
        click.echo("* price entered manually")
    click.echo()


def _find_line(lines: list[ShoppingLine], name: str) -> ShoppingLine | None:
    """Find a line by display name, falling back to the first line of an ingredient."""
    wanted = name.strip().lower()
    for line in lines:
        if line.display_name.lower() == wanted:
            return line
    for line in lines:
        if line.ingredient.lower() == wanted:
            return line
    return None


def _parse_buy(value: str) -> tuple[str, int, str | None]:
    """Parse ``INGREDIENT=N[:UNIT]``."""
    name, sep, rest = value.rpartition("=")
    if not sep or not name.strip():
        raise click.BadParameter(f"expected INGREDIENT=N[:UNIT], got '{value}'")
    count_str, _, unit = rest.partition(":")
    try:
        count = int(count_str)
    except ValueError:
        raise click.BadParameter(f"unit count must be a whole number in '{value}'") from None
    if unit:
        matches = [u for u in ALL_UNITS if u.lower() == unit.strip().lower()]
        if not matches:
            raise click.BadParameter(f"unknown unit '{unit}' in '{value}'")
        return name.strip(), count, matches[0]
    return name.strip(), count, None


def _parse_paid(value: str) -> tuple[str, float]:
    """Parse ``INGREDIENT=PRICE``."""
    name, sep, price_str = value.rpartition("=")
    if not sep or not name.strip():
        raise click.BadParameter(f"expected INGREDIENT=PRICE, got '{value}'")
    try:
        return name.strip(), float(price_str)
    except ValueError:
        raise click.BadParameter(f"price must be a number in '{value}'") from None


# ============================================================================
# Main CLI Group
# ============================================================================


@click.group()
@click.version_option(version=__version__, prog_name="menu-planner")
@click.option(
    "--state-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="State file to use (default: ~/.menu-planner/state.json)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Logging level (default: $MENU_PLANNER_LOG_LEVEL or WARNING)",
)
@click.pass_context
def cli(ctx: click.Context, state_file: Path | None, log_level: str | None):
    """Menu planning and shopping list tool.

    Plan dishes, list what one serving of each needs, and generate a priced
    shopping list for any number of servings.
    """
    configure_logging((log_level or get_log_level()).upper())
    ctx.ensure_object(dict)
    ctx.obj["state_file"] = state_file or get_state_file()


# ============================================================================
# Dish Commands
# ============================================================================


@cli.group()
def dish():
    """Manage dishes on the menu."""
    pass


@dish.command("add")
@click.argument("name")
@click.option("--description", "-d", default="", help="Short description")
@click.pass_context
def dish_add(ctx: click.Context, name: str, description: str):
    """Add a dish."""
    state = _load(ctx)
    try:
        new_dish = state.add_dish(name, description)
    except PlannerError as e:
        _fail(str(e))
    _save(ctx, state)
    click.echo(f"✓ Added dish #{new_dish.id}: {new_dish.name}")


@dish.command("list")
@click.pass_context
def dish_list(ctx: click.Context):
    """List dishes."""
    state = _load(ctx)
    if not state.dishes:
        click.echo("No dishes yet. Add one with: menu-planner dish add NAME")
        return
    for d in state.dishes:
        count = sum(1 for r in state.requirements if r.dish_id == d.id)
        desc = f" - {d.description}" if d.description else ""
        click.echo(f"  #{d.id} {d.name}{desc} ({count} ingredient(s))")


@dish.command("rename")
@click.argument("dish_ref")
@click.argument("new_name")
@click.pass_context
def dish_rename(ctx: click.Context, dish_ref: str, new_name: str):
    """Rename a dish (by name or #id)."""
    state = _load(ctx)
    try:
        old_name = state.resolve_dish(dish_ref).name
        renamed = state.rename_dish(dish_ref, new_name)
    except PlannerError as e:
        _fail(str(e))
    _save(ctx, state)
    click.echo(f"✓ Renamed '{old_name}' to '{renamed.name}'")


@dish.command("describe")
@click.argument("dish_ref")
@click.argument("description")
@click.pass_context
def dish_describe(ctx: click.Context, dish_ref: str, description: str):
    """Change a dish's description."""
    state = _load(ctx)
    try:
        updated = state.update_description(dish_ref, description)
    except PlannerError as e:
        _fail(str(e))
    _save(ctx, state)
    click.echo(f"✓ Updated description of '{updated.name}'")


@dish.command("remove")
@click.argument("dish_ref")
@click.pass_context
def dish_remove(ctx: click.Context, dish_ref: str):
    """Remove a dish and its ingredients."""
    state = _load(ctx)
    try:
        removed_count = len(state.requirements_for(dish_ref))
        removed = state.remove_dish(dish_ref)
    except PlannerError as e:
        _fail(str(e))
    _save(ctx, state)
    click.echo(f"✓ Removed '{removed.name}' and {removed_count} ingredient(s)")


# ============================================================================
# Ingredient Commands
# ============================================================================


@cli.group()
def ingredient():
    """Manage per-serving ingredients of dishes."""
    pass


@ingredient.command("add")
@click.argument("dish_ref")
@click.argument("name")
@click.argument("amount")
@click.argument("unit", type=UNIT_CHOICE)
@click.pass_context
def ingredient_add(ctx: click.Context, dish_ref: str, name: str, amount: str, unit: str):
    """Add NAME to a dish: AMOUNT UNIT per serving."""
    state = _load(ctx)
    try:
        requirement = state.add_requirement(dish_ref, name, amount, unit)
    except PlannerError as e:
        _fail(str(e))
    _save(ctx, state)
    dish_name = state.get_dish(requirement.dish_id).name
    click.echo(f"✓ Added #{requirement.id} to {dish_name}: {requirement}")
    if requirement.amount is None:
        click.echo("  (no valid amount - this row is ignored until an amount is set)")


@ingredient.command("list")
@click.option("--dish", "dish_ref", help="Only show this dish")
@click.pass_context
def ingredient_list(ctx: click.Context, dish_ref: str | None):
    """List ingredients per dish."""
    state = _load(ctx)
    try:
        dishes = [state.resolve_dish(dish_ref)] if dish_ref else state.dishes
    except PlannerError as e:
        _fail(str(e))

    if not state.requirements:
        click.echo("No ingredients yet.")
        return

    for d in dishes:
        click.echo(f"\n{d.name}:")
        rows = [r for r in state.requirements if r.dish_id == d.id]
        if not rows:
            click.echo("  (none)")
        for r in rows:
            click.echo(f"  #{r.id} {r}")
    click.echo()


@ingredient.command("update")
@click.argument("requirement_id", type=int)
@click.option("--dish", "dish_ref", help="Move to another dish")
@click.option("--name", help="New ingredient name")
@click.option("--amount", help="New per-serving amount")
@click.option("--unit", type=UNIT_CHOICE, help="New unit")
@click.pass_context
def ingredient_update(
    ctx: click.Context,
    requirement_id: int,
    dish_ref: str | None,
    name: str | None,
    amount: str | None,
    unit: str | None,
):
    """Change an ingredient row."""
    state = _load(ctx)
    try:
        requirement = state.update_requirement(
            requirement_id, dish=dish_ref, ingredient=name, amount=amount, unit=unit
        )
    except PlannerError as e:
        _fail(str(e))
    _save(ctx, state)
    click.echo(f"✓ Updated #{requirement.id}: {requirement}")


@ingredient.command("remove")
@click.argument("requirement_id", type=int)
@click.pass_context
def ingredient_remove(ctx: click.Context, requirement_id: int):
    """Remove an ingredient row."""
    state = _load(ctx)
    try:
        removed = state.remove_requirement(requirement_id)
    except PlannerError as e:
        _fail(str(e))
    _save(ctx, state)
    click.echo(f"✓ Removed #{removed.id}: {removed}")


# ============================================================================
# Servings
# ============================================================================


@cli.command()
@click.argument("count", type=int, required=False)
@click.pass_context
def servings(ctx: click.Context, count: int | None):
    """Show or set the expected number of servings."""
    state = _load(ctx)
    if count is None:
        click.echo(f"Servings: {state.servings}")
        return
    state.set_servings(count)
    _save(ctx, state)
    click.echo(f"✓ Servings set to {state.servings}")


# ============================================================================
# Catalog Commands
# ============================================================================


@cli.group()
def catalog():
    """Manage known ingredient prices."""
    pass


@catalog.command("show")
@click.argument("name", required=False)
@click.pass_context
def catalog_show(ctx: click.Context, name: str | None):
    """Show price per one unit of each ingredient."""
    state = _load(ctx)
    entries = [e for e in state.catalog.entries() if name is None or e[0] == name]
    if not entries:
        click.echo("No prices known." if name is None else f"No prices known for '{name}'.")
        return

    click.echo(f"{'Ingredient':<28}{'Qty':>4}  {'Unit':<12}{'Price':>10}")
    click.echo("-" * 56)
    for ingredient_name, unit, price in entries:
        click.echo(
            f"{ingredient_name[:27]:<28}{1:>4}  {unit:<12}{format_catalog_price(price):>10}"
        )


@catalog.command("set")
@click.argument("name")
@click.argument("price", type=float)
@click.option("--unit", "-u", type=UNIT_CHOICE, required=True, help="Unit the price is for")
@click.option("--units", "-n", "num_units", type=float, default=1.0, help="Number of units")
@click.pass_context
def catalog_set(ctx: click.Context, name: str, price: float, unit: str, num_units: float):
    """Record that NUM_UNITS x UNIT of NAME cost PRICE."""
    state = _load(ctx)
    try:
        per_unit = state.catalog.record_price(name, num_units, unit, price)
    except InvalidInputError as e:
        _fail(str(e))
    _save(ctx, state)
    click.echo(f"✓ {name}: {format_catalog_price(per_unit)} per {unit}")


@catalog.command("remove")
@click.argument("name")
@click.pass_context
def catalog_remove(ctx: click.Context, name: str):
    """Forget all prices for an ingredient."""
    state = _load(ctx)
    if not state.catalog.remove_ingredient(name):
        _fail(f"No prices known for '{name}'")
    _save(ctx, state)
    click.echo(f"✓ Removed prices for '{name}'")


# ============================================================================
# Conversion
# ============================================================================


@cli.command("convert")
@click.argument("amount", type=float)
@click.argument("from_unit", type=UNIT_CHOICE)
@click.argument("to_unit", type=UNIT_CHOICE)
def convert_cmd(amount: float, from_unit: str, to_unit: str):
    """Convert AMOUNT from one unit to another."""
    result = convert(amount, from_unit, to_unit)
    if result is None:
        _fail(f"Cannot convert {from_unit} to {to_unit}")
    click.echo(f"{format_amount(amount)} {from_unit} = {format_amount(result)} {to_unit}")


# ============================================================================
# Shopping List
# ============================================================================


@cli.command("generate")
@click.option("--servings", "-s", "servings_count", type=int, help="Override servings")
@click.option(
    "--buy",
    "-b",
    "buys",
    multiple=True,
    help="What to buy for an ingredient: INGREDIENT=N[:UNIT] (repeatable)",
)
@click.option(
    "--paid",
    "-p",
    "paid",
    multiple=True,
    help="Price paid for the --buy amount: INGREDIENT=PRICE (repeatable, updates catalog)",
)
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Export to file")
@click.option(
    "--format",
    "-f",
    "export_format",
    type=click.Choice(["json", "md"]),
    help="Export format (default: from file extension)",
)
@click.option("--interactive", "-i", is_flag=True, help="Edit the list interactively")
@click.pass_context
def generate_cmd(
    ctx: click.Context,
    servings_count: int | None,
    buys: tuple[str, ...],
    paid: tuple[str, ...],
    output: str | None,
    export_format: str | None,
    interactive: bool,
):
    """Generate the shopping list."""
    state = _load(ctx)
    if servings_count is not None:
        state.set_servings(servings_count)
        _save(ctx, state)

    lines = state.generate()

    for value in buys:
        name, count, unit = _parse_buy(value)
        line = _find_line(lines, name)
        if line is None:
            _fail(f"'{name}' is not on the shopping list")
        if unit is None:
            update_line(line, state.catalog, num_units=count)
        else:
            update_line(line, state.catalog, num_units=count, type_of_unit=unit)

    catalog_changed = False
    for value in paid:
        name, price = _parse_paid(value)
        line = _find_line(lines, name)
        if line is None:
            _fail(f"'{name}' is not on the shopping list")
        on_manual_price_entered(line, price, state.catalog)
        catalog_changed = catalog_changed or line.num_units is not None

    if catalog_changed:
        refresh_prices(lines, state.catalog)

    if interactive:
        from .tui import edit_shopping_list

        result = edit_shopping_list(lines, state.catalog, title="Shopping List")
        if not result.confirmed:
            click.echo("Cancelled.")
            return
        lines = result.lines
        state.catalog = result.catalog
        catalog_changed = True

    if catalog_changed:
        _save(ctx, state)

    display_shopping_list(lines, state.servings)

    if output:
        try:
            used = export_shopping_list(
                lines, output, servings=state.servings, format=export_format
            )
        except (OSError, ValueError) as e:
            _fail(f"Export failed: {e}")
        click.echo(f"✓ Exported to {output} ({used})")


@cli.command()
@click.option("--yes", is_flag=True, help="Don't ask for confirmation")
@click.pass_context
def reset(ctx: click.Context, yes: bool):
    """Replace all dishes, ingredients and prices with the sample menu."""
    if not yes:
        click.confirm("This replaces all dishes, ingredients and prices. Continue?", abort=True)
    _save(ctx, PlannerState.seed())
    click.echo("✓ Reset to sample menu")


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
