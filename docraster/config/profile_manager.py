"""Process-wide active render profile.

PipelineSettings.from_profile() and the CLI read page geometry, readiness
timings and the page limit from here, so a profile chosen once with
--profile applies to every document rendered afterwards.
"""

from typing import Optional, Union

from .profile_loader import RenderProfile, get_default_profile, load_profile

_active: Optional[RenderProfile] = None


def set_profile(profile: Union[str, RenderProfile] = "default") -> RenderProfile:
    """Make a render profile active for subsequent documents.

    Args:
        profile: Profile name under configs/profiles/, or a RenderProfile
            built in code

    Returns:
        The now active RenderProfile

    Raises:
        FileNotFoundError: If no YAML file exists for the name
        ValueError: If the YAML holds invalid page or readiness values
    """
    global _active
    _active = profile if isinstance(profile, RenderProfile) else load_profile(profile)
    return _active


def get_profile() -> RenderProfile:
    """Active render profile, loading the default A4 one on first use."""
    global _active
    if _active is None:
        _active = get_default_profile()
    return _active


def reset_profile():
    global _active
    _active = None
