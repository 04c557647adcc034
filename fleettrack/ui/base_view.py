# fleettrack/ui/base_view.py
import flet as ft

from fleettrack.pages.base import PageController


class PageView:
    """Binds a controller to Flet controls. Subclasses fill `build` and `render`."""

    def __init__(self, page: ft.Page, controller: PageController):
        self.page = page
        self.controller = controller
        self.progress = ft.ProgressBar(visible=False)
        self.error_text = ft.Text("", color=ft.Colors.RED_400, visible=False)
        controller.on_change = self.refresh

    def build(self) -> ft.Control:
        raise NotImplementedError

    def render(self):
        raise NotImplementedError

    def refresh(self):
        self.progress.visible = self.controller.loading
        self.error_text.value = self.controller.error or ""
        self.error_text.visible = bool(self.controller.error) and not self.controller.loading
        self.render()
        self.page.update()

    async def load(self):
        await self.controller.load()

    def dispose(self):
        self.controller.unmount()

    def header(self, title: str, *actions: ft.Control) -> ft.Control:
        return ft.Column(
            [
                ft.Row(
                    [ft.Text(title, size=22, weight=ft.FontWeight.BOLD), ft.Row(list(actions))],
                    alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
                ),
                self.progress,
                self.error_text,
            ],
            spacing=6,
        )


def options(pairs) -> list[ft.dropdown.Option]:
    return [ft.dropdown.Option(key=str(k), text=str(t)) for k, t in pairs]


def status_chip(text: str) -> ft.Control:
    colors = {
        "COMPLETED": ft.Colors.GREEN_700,
        "ACTIVE": ft.Colors.GREEN_700,
        "IN_PROGRESS": ft.Colors.BLUE_700,
        "ON_TRIP": ft.Colors.BLUE_700,
        "PENDING": ft.Colors.AMBER_800,
        "MAINTENANCE": ft.Colors.AMBER_800,
        "OVERDUE": ft.Colors.RED_700,
        "CANCELLED": ft.Colors.RED_700,
    }
    return ft.Container(
        content=ft.Text(text.replace("_", " ").title() or "-", size=11, color=ft.Colors.WHITE),
        bgcolor=colors.get(text, ft.Colors.BLUE_GREY_600),
        padding=ft.padding.symmetric(2, 8),
        border_radius=10,
    )
