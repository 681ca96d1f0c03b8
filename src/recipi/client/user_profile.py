"""Client-side logic for viewing, editing and deleting a user profile."""

import logging
from dataclasses import dataclass, fields
from typing import Optional

import httpx

from .session import ClientContext, Result

logger = logging.getLogger(__name__)

UPDATE_ERROR = "There has been an error updating your account"
DELETE_ERROR = "There has been an error deleting your account"


@dataclass
class ProfilePatch:
    """Profile fields the user actually changed; None means unchanged."""

    username: Optional[str] = None
    bio: Optional[str] = None
    email: Optional[str] = None
    # (filename, content, content type) of a new profile picture
    file: Optional[tuple] = None

    def changed(self) -> dict:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "file" and getattr(self, f.name)
        }

    def is_empty(self) -> bool:
        return not self.changed() and not self.file

    def multipart(self) -> list:
        parts = [(k, (None, v)) for k, v in self.changed().items()]
        if self.file:
            parts.append(("file", self.file))
        return parts


class UserProfileController:
    def __init__(self, http: httpx.Client, context: ClientContext):
        self.http = http
        self.context = context
        self.loading = False
        self.error: Optional[str] = None
        self.profile: Optional[dict] = None

    @property
    def session(self):
        return self.context.session

    @property
    def recipes(self) -> list:
        return (self.profile or {}).get("recipes", [])

    @property
    def is_owner(self) -> bool:
        """Whether to show the edit and delete controls.

        Compares the username claim of the stored token with the loaded
        profile. The API checks ownership again on every write.
        """
        if not self.profile:
            return False
        name = self.session.username
        return name is not None and name == self.profile.get("username")

    def load_profile(self, username: str) -> Result:
        if self.session.is_expired():
            logger.info("Stored token expired, dropping it")
            self.session.clear()
        self.loading = True
        self.error = None
        try:
            response = self.http.get(
                f"/users/{username}", headers=self.session.auth_headers()
            )
            response.raise_for_status()
            self.profile = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Error fetching profile %s: %s", username, exc)
            result = Result.failure(exc)
            self.error = f"Error fetching data: {result.error}"
            return result
        finally:
            self.loading = False
        return Result(ok=True, data=self.profile, status=response.status_code)

    def update_profile(self, patch: ProfilePatch) -> Result:
        """Send only the changed fields, then swap in the re-issued token."""
        if patch.is_empty():
            return Result(ok=False, error="Nothing to update")
        try:
            response = self.http.patch(
                "/users/user",
                files=patch.multipart(),
                headers=self.session.auth_headers(),
            )
            response.raise_for_status()
            user = response.json()["user"]
        except (httpx.HTTPError, ValueError, KeyError) as exc:
            logger.warning("Error updating profile: %s", exc)
            result = Result.failure(exc, UPDATE_ERROR)
            self.context.toaster.toast(result.error, variant="fail")
            return result

        # the previous token still names the old username
        self.session.clear()
        self.session.set_token(user["token"])
        self.context.navigator.navigate(f"/users/{user['username']}")
        self.context.navigator.reload()
        self.profile = {**(self.profile or {}), **user}
        self.profile.pop("token", None)
        return Result(ok=True, data=user, status=response.status_code)

    def delete_profile(self) -> Result:
        """Delete the account for good and drop the stored token."""
        try:
            response = self.http.delete(
                "/users/user", headers=self.session.auth_headers()
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Error deleting profile: %s", exc)
            result = Result.failure(exc, DELETE_ERROR)
            self.context.toaster.toast(result.error, variant="fail")
            return result
        self.session.clear()
        self.profile = None
        self.context.navigator.navigate("/")
        self.context.navigator.reload()
        return Result(ok=True, status=response.status_code)
