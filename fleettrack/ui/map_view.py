# fleettrack/ui/map_view.py
from typing import Callable, Optional

import flet as ft
import flet.map as ftm

from fleettrack.core.config import settings
from fleettrack.pages.track import MapMarker


class FleetMap:
    """Tile layer plus one marker layer; optional click-to-pick."""

    def __init__(self, on_pick: Optional[Callable[[float, float], None]] = None, height: Optional[int] = None):
        self.on_pick = on_pick
        self.marker_layer = ftm.MarkerLayer(markers=[])
        self.control = ftm.Map(
            expand=height is None,
            height=height,
            initial_center=ftm.MapLatitudeLongitude(settings.map_center_lat, settings.map_center_lng),
            initial_zoom=settings.map_zoom,
            on_tap=self._tap,
            layers=[
                ftm.TileLayer(url_template=settings.tile_url_template),
                self.marker_layer,
            ],
        )

    def _tap(self, e):
        if self.on_pick and e.coordinates:
            self.on_pick(e.coordinates.latitude, e.coordinates.longitude)

    def set_markers(self, markers: list[MapMarker]):
        self.marker_layer.markers = [
            ftm.Marker(
                content=ft.Container(
                    content=ft.Icon(ft.Icons.LOCAL_SHIPPING, color=ft.Colors.WHITE, size=16),
                    bgcolor=m.color,
                    border=ft.border.all(3, m.ring),
                    border_radius=20,
                    width=32,
                    height=32,
                    alignment=ft.alignment.center,
                    tooltip=m.label,
                ),
                coordinates=ftm.MapLatitudeLongitude(m.lat, m.lng),
                width=32,
                height=32,
            )
            for m in markers
        ]

    def set_pins(self, points: list[tuple[float, float, str]]):
        """Plain pins (assignment start/drop)."""
        self.marker_layer.markers = [
            ftm.Marker(
                content=ft.Icon(ft.Icons.LOCATION_ON, color=color, size=30),
                coordinates=ftm.MapLatitudeLongitude(lat, lng),
            )
            for lat, lng, color in points
        ]

    def move_to(self, lat: float, lng: float, zoom: float = 14):
        self.control.move_to(destination=ftm.MapLatitudeLongitude(lat, lng), zoom=zoom)
