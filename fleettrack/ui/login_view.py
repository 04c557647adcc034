# fleettrack/ui/login_view.py
import flet as ft

from fleettrack.pages.login import LoginController


class LoginView:
    def __init__(self, page: ft.Page, controller: LoginController):
        self.page = page
        self.controller = controller

        self.username = ft.TextField(label="Username", width=360, autofocus=True)
        self.password = ft.TextField(
            label="Password", width=360, password=True, can_reveal_password=True, on_submit=self.do_login
        )
        self.msg = ft.Text("", color=ft.Colors.RED_400)
        self.btn = ft.ElevatedButton("Sign in", width=360, on_click=self.do_login)
        self.spinner = ft.ProgressRing(width=18, height=18, visible=False)

    async def do_login(self, e=None):
        self.btn.disabled = True
        self.spinner.visible = True
        self.msg.value = ""
        self.page.update()
        try:
            ok = await self.controller.submit(self.username.value or "", self.password.value or "")
        finally:
            self.btn.disabled = False
            self.spinner.visible = False
        if not ok:
            self.msg.value = self.controller.message or ""
            self.page.update()

    def build(self) -> ft.Control:
        return ft.Container(
            alignment=ft.alignment.center,
            expand=True,
            content=ft.Card(
                content=ft.Container(
                    padding=30,
                    content=ft.Column(
                        [
                            ft.Row([ft.Icon(ft.Icons.LOCAL_SHIPPING, size=32), ft.Text("FleetTrack", size=26, weight=ft.FontWeight.BOLD)]),
                            ft.Text("Sign in to manage your fleet"),
                            self.username,
                            self.password,
                            ft.Row([self.btn, self.spinner]),
                            self.msg,
                        ],
                        spacing=12,
                        tight=True,
                    ),
                )
            ),
        )

    async def load(self):
        pass

    def dispose(self):
        pass
