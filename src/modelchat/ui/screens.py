"""Modal screens for the TUI.

This module hides the design decisions about:
- How a model is picked from the catalog
- How a thread rename is entered
- Keyboard shortcuts for dialogs
"""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, OptionList, Static
from textual.widgets.option_list import Option

from ..catalog import Model, ModelCatalog

DIALOG_CSS = """
{name} {{
    align: center middle;
    background: $background 70%;
}}

{name} > Vertical {{
    width: 64;
    height: auto;
    max-height: 24;
    border: tall $accent;
    background: $surface;
    padding: 1 2;
}}

{name} .dialog-title {{
    width: 100%;
    text-align: center;
    text-style: bold;
    color: $accent;
    padding: 0 0 1 0;
    border-bottom: solid $border;
    margin-bottom: 1;
}}
"""


class ModelPickerScreen(ModalScreen[Model | None]):
    """Pick a model from the catalog, grouped by provider.

    Dismisses with the chosen Model, or None on escape.
    """

    CSS = DIALOG_CSS.format(name="ModelPickerScreen")

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=False),
    ]

    def __init__(self, catalog: ModelCatalog, current: Model, title: str = "Select model") -> None:
        super().__init__()
        self._catalog = catalog
        self._current = current
        self._title = title
        self._models: dict[str, Model] = {}

    def compose(self) -> ComposeResult:
        options: list[Option | None] = []
        highlighted = 0
        for provider, models in self._catalog.by_provider().items():
            if options:
                options.append(None)
            options.append(Option(f"[bold]{provider.display_name}[/bold]", disabled=True))
            for model in models:
                option_id = f"opt-{len(self._models)}"
                self._models[option_id] = model
                marker = " [dim](current)[/dim]" if model == self._current else ""
                if model == self._current:
                    highlighted = len(options)
                options.append(Option(f"  {model.name}{marker}", id=option_id))

        with Vertical():
            yield Static(self._title, classes="dialog-title")
            option_list = OptionList(*options, id="model-options")
            option_list.highlighted = highlighted
            yield option_list

    def on_mount(self) -> None:
        self.query_one("#model-options", OptionList).focus()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        model = self._models.get(event.option.id or "")
        if model is not None:
            self.dismiss(model)

    def action_cancel(self) -> None:
        self.dismiss(None)


class RenameScreen(ModalScreen[str | None]):
    """Enter a new display name for a thread.

    Dismisses with the entered name ("" clears it), or None on escape.
    """

    CSS = DIALOG_CSS.format(name="RenameScreen")

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=False),
    ]

    def __init__(self, current_name: str) -> None:
        super().__init__()
        self._current_name = current_name

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static("Rename chat", classes="dialog-title")
            yield Input(value=self._current_name, placeholder="Chat name", id="rename-input")

    def on_mount(self) -> None:
        self.query_one("#rename-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.dismiss(event.value.strip())

    def action_cancel(self) -> None:
        self.dismiss(None)
