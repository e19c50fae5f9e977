"""Interactive TUI for editing what to buy and what it costs."""

import copy
from dataclasses import dataclass

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, DataTable, Footer, Header, Input, Label, Static

from .catalog import Catalog
from .export import calculate_total_cost, format_amount, format_price
from .shopping import ShoppingLine, on_manual_price_entered, refresh_prices, update_line
from .units import ALL_UNITS


@dataclass
class EditResult:
    """Result from the interactive editor."""

    confirmed: bool
    lines: list[ShoppingLine]
    catalog: Catalog


@dataclass
class LineEdit:
    """Values entered in the line editor."""

    num_units: int | None
    type_of_unit: str | None
    price: float | None
    price_changed: bool = False


def _price_text(line: ShoppingLine) -> str:
    return "" if line.price is None else f"{line.price:.2f}"


def parse_line_edit(
    num_units_text: str, unit_text: str, price_text: str, original_price_text: str = ""
) -> LineEdit:
    """
    Interpret the editor's text fields.

    Blank or invalid numbers become None; unit names are matched
    case-insensitively and unknown names become None. The price only
    counts as changed if its text differs from what was shown.
    """
    num_units: int | None
    try:
        num_units = int(num_units_text.strip()) if num_units_text.strip() else None
    except ValueError:
        num_units = None
    if num_units is not None and num_units < 0:
        num_units = None

    wanted = unit_text.strip().lower()
    type_of_unit = next((u for u in ALL_UNITS if u.lower() == wanted), None)

    price: float | None
    try:
        price = float(price_text.strip()) if price_text.strip() else None
    except ValueError:
        price = None

    return LineEdit(
        num_units=num_units,
        type_of_unit=type_of_unit,
        price=price,
        price_changed=price_text.strip() != original_price_text.strip(),
    )


class LineEditModal(ModalScreen[LineEdit | None]):
    """Modal dialog to edit one shopping line."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, line: ShoppingLine, name: str | None = None) -> None:
        super().__init__(name=name)
        self.line = line

    def compose(self) -> ComposeResult:
        line = self.line
        with Vertical(id="edit-dialog"):
            yield Label(f"{line.display_name}", id="edit-title")
            yield Label(
                f"Needed: {format_amount(line.total_amount)} {line.unit}", id="edit-needed"
            )
            yield Static("", id="edit-spacer")
            yield Label("Number of units")
            yield Input(
                value="" if line.num_units is None else str(line.num_units),
                placeholder="e.g. 2",
                id="input-num-units",
            )
            yield Label(f"Unit ({', '.join(ALL_UNITS)})")
            yield Input(value=line.type_of_unit or "", id="input-unit")
            yield Label("Price (leave empty to use catalog price)")
            yield Input(value=_price_text(line), placeholder="Price", id="input-price")
            with Horizontal(id="edit-buttons"):
                yield Button("Apply", variant="success", id="btn-apply")
                yield Button("Cancel", variant="default", id="btn-cancel")

    def _collect(self) -> LineEdit:
        return parse_line_edit(
            self.query_one("#input-num-units", Input).value,
            self.query_one("#input-unit", Input).value,
            self.query_one("#input-price", Input).value,
            _price_text(self.line),
        )

    @on(Input.Submitted)
    def on_input_submitted(self) -> None:
        self.dismiss(self._collect())

    @on(Button.Pressed, "#btn-apply")
    def on_apply(self) -> None:
        self.dismiss(self._collect())

    @on(Button.Pressed, "#btn-cancel")
    def on_cancel(self) -> None:
        self.dismiss(None)

    def action_cancel(self) -> None:
        self.dismiss(None)


class ShoppingListScreen(App[EditResult]):
    """Interactive screen for editing the shopping list."""

    CSS = """
    Screen {
        background: $surface;
    }

    #main-container {
        height: 100%;
        padding: 1;
    }

    #summary {
        height: 3;
        padding: 0 1;
        background: $primary-background;
        color: $text;
        content-align: center middle;
    }

    #lines-table {
        height: 1fr;
        margin: 1 0;
    }

    #button-bar {
        height: 3;
        align: center middle;
        padding: 0 1;
    }

    #button-bar Button {
        margin: 0 1;
    }

    #edit-dialog {
        width: 60;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: solid $primary;
    }

    #edit-title {
        text-style: bold;
    }

    #edit-needed {
        color: $text-muted;
    }

    #edit-spacer {
        height: 1;
    }

    #edit-buttons {
        height: 3;
        align: center middle;
    }
    """

    BINDINGS = [
        Binding("q", "quit_cancel", "Cancel"),
        Binding("enter", "edit_line", "Edit"),
        Binding("c", "confirm", "Confirm"),
        Binding("escape", "quit_cancel", "Cancel"),
    ]

    def __init__(
        self,
        lines: list[ShoppingLine],
        catalog: Catalog,
        title: str | None = None,
    ) -> None:
        super().__init__()
        self.lines = copy.deepcopy(lines)
        self.catalog = Catalog(catalog.to_dict())
        self.list_title = title or "Shopping List"

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="main-container"):
            yield Static(self._get_summary(), id="summary")
            table = DataTable(id="lines-table")
            table.cursor_type = "row"
            table.add_columns("Ingredient", "Total", "Unit", "Buy", "Price")
            yield table
            with Horizontal(id="button-bar"):
                yield Button("Confirm (c)", variant="success", id="btn-confirm")
                yield Button("Cancel (q)", variant="error", id="btn-cancel")
        yield Footer()

    def on_mount(self) -> None:
        self.title = self.list_title
        self._refresh_table()

    def _get_summary(self) -> str:
        priced = sum(1 for line in self.lines if line.price is not None)
        total = calculate_total_cost(self.lines)
        return (
            f"Items: {len(self.lines)} | Priced: {priced} | "
            f"Unpriced: {len(self.lines) - priced} | Total: {format_price(total)}"
        )

    def _refresh_table(self) -> None:
        table = self.query_one("#lines-table", DataTable)
        table.clear()

        for line in self.lines:
            buy = f"{line.num_units} x {line.type_of_unit}" if line.num_units else "-"
            price = format_price(line.price)
            if line.is_manual_price:
                price += " (manual)"
            table.add_row(
                line.display_name[:30],
                format_amount(line.total_amount),
                line.unit,
                buy,
                price,
            )

        summary = self.query_one("#summary", Static)
        summary.update(self._get_summary())

    def apply_edit(self, index: int, edit: LineEdit) -> ShoppingLine:
        """
        Apply an edit to one line.

        Unit changes re-estimate the line; a changed price is treated as a
        manual price and taught to the catalog. Other auto-priced lines are
        re-estimated afterwards, since the catalog may have learned a price.
        """
        line = self.lines[index]
        update_line(line, self.catalog, num_units=edit.num_units, type_of_unit=edit.type_of_unit)
        if edit.price_changed:
            on_manual_price_entered(line, edit.price, self.catalog)
        refresh_prices(self.lines, self.catalog)
        return line

    def action_edit_line(self) -> None:
        table = self.query_one("#lines-table", DataTable)
        if table.cursor_row is not None and 0 <= table.cursor_row < len(self.lines):
            row_idx = table.cursor_row
            self.push_screen(
                LineEditModal(self.lines[row_idx]),
                callback=lambda edit: self._on_line_edited(row_idx, edit),
            )

    def _on_line_edited(self, index: int, edit: LineEdit | None) -> None:
        if edit is not None:
            self.apply_edit(index, edit)
            self._refresh_table()

    def action_confirm(self) -> None:
        self.exit(EditResult(confirmed=True, lines=self.lines, catalog=self.catalog))

    def action_quit_cancel(self) -> None:
        self.exit(EditResult(confirmed=False, lines=self.lines, catalog=self.catalog))

    @on(DataTable.RowSelected)
    def on_row_selected(self) -> None:
        self.action_edit_line()

    @on(Button.Pressed, "#btn-confirm")
    def on_confirm_button(self) -> None:
        self.action_confirm()

    @on(Button.Pressed, "#btn-cancel")
    def on_cancel_button(self) -> None:
        self.action_quit_cancel()


def edit_shopping_list(
    lines: list[ShoppingLine],
    catalog: Catalog,
    title: str | None = None,
) -> EditResult:
    """
    Launch interactive TUI for editing a shopping list.

    Args:
        lines: Shopping lines to edit (not modified)
        catalog: Price catalog (not modified)
        title: Optional title for the screen

    Returns:
        EditResult with confirmed status, edited lines and updated catalog
    """
    app = ShoppingListScreen(lines, catalog, title)
    result = app.run()
    # Handle case where app exits without explicit result (e.g., crash)
    if result is None:
        return EditResult(confirmed=False, lines=lines, catalog=catalog)
    return result
