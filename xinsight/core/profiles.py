"""Session-scoped store of analysis profiles."""

import uuid

from xinsight.exceptions import BuiltinProfileError, ProfileNotFoundError, ValidationError
from xinsight.models.profile import AnalysisProfile

DEFAULT_PROFILE_ID = "sentiment"

BUILTIN_PROFILES = (
    AnalysisProfile(
        id="sentiment",
        name="Sentiment analysis",
        prompt_template=(
            "Analyze the following tweets and determine the overall sentiment of their "
            "authors. Summarize which emotions dominate and highlight the key topics that "
            "draw positive and negative reactions."
        ),
        builtin=True,
    ),
    AnalysisProfile(
        id="topics",
        name="Topic extraction",
        prompt_template=(
            "Analyze the following tweets and identify the 5-7 main topics the authors "
            "talk about. For each topic, state its importance and quote example tweets."
        ),
        builtin=True,
    ),
    AnalysisProfile(
        id="engagement",
        name="Engagement analysis",
        prompt_template=(
            "Analyze the following tweets and determine which kinds of content attract the "
            "most attention. Name the factors that drive likes, retweets and replies."
        ),
        builtin=True,
    ),
)


class ProfileStore:
    """
    Keyed collection of analysis profiles with a current selection.

    Built-in profiles are always present and cannot be updated or deleted.
    """

    def __init__(self):
        self._profiles: dict[str, AnalysisProfile] = {
            profile.id: profile for profile in BUILTIN_PROFILES
        }
        self._selected_id = DEFAULT_PROFILE_ID

    def list(self) -> list[AnalysisProfile]:
        """Profiles in creation order, built-ins first."""
        return list(self._profiles.values())

    def get(self, profile_id: str) -> AnalysisProfile:
        try:
            return self._profiles[profile_id]
        except KeyError:
            raise ProfileNotFoundError(f"No analysis profile with id {profile_id!r}") from None

    def __contains__(self, profile_id: str) -> bool:
        return profile_id in self._profiles

    def __len__(self) -> int:
        return len(self._profiles)

    @property
    def selected_id(self) -> str:
        return self._selected_id

    @property
    def selected(self) -> AnalysisProfile:
        return self._profiles[self._selected_id]

    def select(self, profile_id: str) -> AnalysisProfile:
        profile = self.get(profile_id)
        self._selected_id = profile.id
        return profile

    def create(self, name: str, prompt_template: str) -> AnalysisProfile:
        """
        Add a user profile and select it.

        Raises:
            ValidationError: Name or prompt is blank
        """
        _require(name, "Profile name")
        _require(prompt_template, "Profile prompt")

        profile_id = f"profile-{uuid.uuid4().hex[:12]}"
        profile = AnalysisProfile(id=profile_id, name=name.strip(), prompt_template=prompt_template)
        self._profiles[profile_id] = profile
        self._selected_id = profile_id
        return profile

    def update(
        self,
        profile_id: str,
        name: str | None = None,
        prompt_template: str | None = None,
    ) -> AnalysisProfile:
        """
        Replace name and/or prompt of a user profile in place.

        Raises:
            ProfileNotFoundError: Unknown id
            BuiltinProfileError: Profile is built-in
            ValidationError: A supplied value is blank
        """
        profile = self._mutable(profile_id)
        changes = {}
        if name is not None:
            _require(name, "Profile name")
            changes["name"] = name.strip()
        if prompt_template is not None:
            _require(prompt_template, "Profile prompt")
            changes["prompt_template"] = prompt_template

        updated = profile.model_copy(update=changes)
        self._profiles[profile_id] = updated
        return updated

    def delete(self, profile_id: str) -> AnalysisProfile:
        """
        Remove a user profile. A deleted selection falls back to DEFAULT_PROFILE_ID.

        Raises:
            ProfileNotFoundError: Unknown id
            BuiltinProfileError: Profile is built-in
        """
        profile = self._mutable(profile_id)
        del self._profiles[profile_id]
        if self._selected_id == profile_id:
            self._selected_id = DEFAULT_PROFILE_ID
        return profile

    def _mutable(self, profile_id: str) -> AnalysisProfile:
        profile = self.get(profile_id)
        if profile.builtin:
            raise BuiltinProfileError(f"Built-in profile {profile_id!r} cannot be modified")
        return profile


def _require(value: str, label: str) -> None:
    if not value or not value.strip():
        raise ValidationError(f"{label} is required")
