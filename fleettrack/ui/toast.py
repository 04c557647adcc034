# fleettrack/ui/toast.py
import flet as ft

from fleettrack.core.notify import Notice, Notifier

LEVEL_COLORS = {
    "info": ft.Colors.BLUE_GREY_700,
    "success": ft.Colors.GREEN_700,
    "warning": ft.Colors.AMBER_800,
    "error": ft.Colors.RED_700,
}


def toast(page: ft.Page, notice: Notice):
    body = [ft.Text(notice.title, weight=ft.FontWeight.BOLD)]
    if notice.message:
        body.append(ft.Text(notice.message, size=12))
    page.open(
        ft.SnackBar(
            content=ft.Column(body, spacing=2, tight=True),
            bgcolor=LEVEL_COLORS.get(notice.level, LEVEL_COLORS["info"]),
            duration=4000 if notice.level != "error" else 6000,
        )
    )
    page.update()


def make_notifier(page: ft.Page) -> Notifier:
    return lambda notice: toast(page, notice)
