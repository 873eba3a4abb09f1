"""
Profile management for the practice game.

Handles creating, selecting and deleting learner profiles and owns the
single current-profile pointer stored in the game document. One name,
"admin" in any casing, is reserved for the grown-up who looks at the
statistics of all learners; it never plays.
"""

import logging

from sumapp.errors import NotFoundError, ValidationError
from sumapp.levels import MAX_LEVEL, MIN_LEVEL
from sumapp.models import Profile, ProblemStat, utc_now
from sumapp.persistence import PersistenceManager

logger = logging.getLogger(__name__)

ADMIN_PROFILE_NAME = "admin"
MAX_NAME_LENGTH = 20


def is_admin(profile_name: str | None) -> bool:
    """Check whether a profile name is the reserved admin name."""
    return bool(profile_name) and profile_name.lower() == ADMIN_PROFILE_NAME


class ProfileManager:
    """Create, select and delete profiles; read and update their level."""

    def __init__(self, persistence_manager: PersistenceManager):
        self._pm = persistence_manager

    def get_all(self) -> dict[str, Profile]:
        """All profiles by name, admin included."""
        return self._pm.load().profiles

    def get_learners(self) -> dict[str, Profile]:
        """All profiles that play the game (admin excluded)."""
        return {name: profile for name, profile in self.get_all().items() if not is_admin(name)}

    def get(self, profile_name: str) -> Profile | None:
        return self._pm.load().profiles.get(profile_name)

    def exists(self, profile_name: str) -> bool:
        return profile_name in self.get_all()

    def get_current_name(self) -> str | None:
        return self._pm.load().current_profile

    def get_current(self) -> Profile | None:
        """The currently selected profile, or None if none is selected."""
        game_data = self._pm.load()
        if not game_data.current_profile:
            return None
        return game_data.profiles.get(game_data.current_profile)

    def create(self, name: str) -> Profile:
        """
        Create a new profile at level 1 and make it the current one.

        Args:
            name: The profile name; surrounding whitespace is ignored.

        Returns:
            The new Profile.

        Raises:
            ValidationError: If the name is blank, too long or already taken.
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Profile name cannot be empty")
        if len(name) > MAX_NAME_LENGTH:
            raise ValidationError(f"Profile name cannot be longer than {MAX_NAME_LENGTH} characters")

        game_data = self._pm.load()
        if name in game_data.profiles:
            raise ValidationError("Profile name already exists")

        profile = Profile(name=name)
        game_data.profiles[name] = profile
        game_data.current_profile = name
        self._pm.save(game_data)

        logger.info(f"Created profile {name}")
        return profile

    def select(self, name: str) -> Profile:
        """
        Make an existing profile the current one.

        Raises:
            NotFoundError: If no profile has that name.
        """
        game_data = self._pm.load()
        profile = game_data.profiles.get(name)
        if profile is None:
            raise NotFoundError("Profile not found")

        game_data.current_profile = name
        self._pm.save(game_data)

        logger.info(f"Selected profile {name}")
        return profile

    def select_or_create(self, name: str) -> tuple[Profile, bool]:
        """
        Select a profile, creating it first if it does not exist yet.

        Returns:
            Tuple of (profile, created).
        """
        name = (name or "").strip()
        if self.exists(name):
            return self.select(name), False
        return self.create(name), True

    def delete(self, name: str) -> None:
        """
        Delete a profile and all of its history.

        The current-profile pointer is cleared only if it pointed at the
        deleted profile; no other profile is selected in its place.

        Raises:
            NotFoundError: If no profile has that name.
        """
        game_data = self._pm.load()
        if name not in game_data.profiles:
            raise NotFoundError("Profile not found")

        del game_data.profiles[name]
        if game_data.current_profile == name:
            game_data.current_profile = None
        self._pm.save(game_data)

        logger.info(f"Deleted profile {name}")

    def get_level(self, name: str) -> int:
        profile = self.get(name)
        return profile.level if profile else MIN_LEVEL

    def get_stats(self, name: str) -> dict[str, ProblemStat]:
        profile = self.get(name)
        return profile.stats if profile else {}

    def update_level(self, name: str, new_level: int) -> Profile:
        """
        Store a profile's new level.

        Levels only go up, one step at a time, and never past the last level.
        Setting the current level again is allowed and changes nothing.

        Raises:
            NotFoundError: If no profile has that name.
            ValidationError: If new_level is not the current level or the next one.
        """
        game_data = self._pm.load()
        profile = game_data.profiles.get(name)
        if profile is None:
            raise NotFoundError("Profile not found")

        if new_level == profile.level:
            return profile
        if new_level != profile.level + 1 or new_level > MAX_LEVEL:
            raise ValidationError(
                f"Cannot move {name} from level {profile.level} to level {new_level}"
            )

        profile.level = new_level
        profile.last_played = utc_now()
        self._pm.save(game_data)

        logger.info(f"Profile {name} advanced to level {new_level}")
        return profile
