# fleettrack/pages/driver_profile.py
from typing import Optional

from fleettrack.pages.base import PageController
from fleettrack.services.resources import Profile

NOT_FOUND = "Profile not found."


class DriverProfileController(PageController):
    """The signed-in user's own profile; error card with Retry when it can't be read."""

    title = "My Profile"

    profile: Optional[Profile] = None

    async def fetch(self) -> None:
        self.profile = None
        if not self.user_id:
            self.error = NOT_FOUND
            return
        ok, profile = await self.call(self.api.my_profile(self.user_id), "Could not load profile")
        if ok:
            self.profile = profile
        elif self.error_status == 404:
            self.error = NOT_FOUND

    async def retry(self) -> None:
        await self.load()
