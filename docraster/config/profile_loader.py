"""Render profile loader: page geometry and readiness bounds from YAML."""

import yaml
from pathlib import Path
from typing import Dict, Any
from dataclasses import dataclass, field

from ..models.page_spec import PhysicalPageSpec
from ..pipeline.readiness import ReadinessPolicy
from . import DEFAULT_MAX_PAGES


@dataclass
class RenderProfile:
    """Configuration profile for document rendering."""
    name: str
    description: str = ""
    page: PhysicalPageSpec = field(default_factory=PhysicalPageSpec)
    readiness: ReadinessPolicy = field(default_factory=ReadinessPolicy)
    page_numbers: bool = False
    max_pages: int = DEFAULT_MAX_PAGES

    def __post_init__(self):
        """Validate page limit."""
        if self.max_pages < 1:
            raise ValueError(f"max_pages must be >= 1, got {self.max_pages}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderProfile':
        """Create RenderProfile from dictionary."""
        return cls(
            name=data.get('name', 'default'),
            description=data.get('description', ''),
            page=PhysicalPageSpec.from_dict(data.get('page') or {}),
            readiness=ReadinessPolicy.from_dict(data.get('readiness') or {}),
            page_numbers=bool(data.get('page_numbers', False)),
            max_pages=int(data.get('max_pages', DEFAULT_MAX_PAGES)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'name': self.name,
            'description': self.description,
            'page': self.page.to_dict(),
            'readiness': self.readiness.to_dict(),
            'page_numbers': self.page_numbers,
            'max_pages': self.max_pages,
        }


def get_profiles_dir() -> Path:
    """Get directory containing profile YAML files.

    Returns:
        Path to profiles directory
    """
    # docraster/configs/profiles, installed as package data
    package_root = Path(__file__).resolve().parent.parent
    return package_root / "configs" / "profiles"


def load_profile(profile_name: str = "default") -> RenderProfile:
    """Load a render profile.

    Args:
        profile_name: Name of profile to load (without .yaml extension)

    Returns:
        RenderProfile object

    Raises:
        FileNotFoundError: If profile file doesn't exist
        ValueError: If profile file is invalid
    """
    profile_path = get_profiles_dir() / f"{profile_name}.yaml"

    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_name} (expected at {profile_path})")

    try:
        with open(profile_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in profile {profile_name}: {e}") from e

    if not data:
        raise ValueError(f"Profile file is empty: {profile_path}")
    if not isinstance(data, dict):
        raise ValueError(f"Profile {profile_name} must be a mapping, got {type(data).__name__}")

    try:
        return RenderProfile.from_dict(data)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Error loading profile {profile_name}: {e}") from e


def list_available_profiles() -> list[str]:
    """List all available profile names.

    Returns:
        List of profile names (without .yaml extension)
    """
    profiles_dir = get_profiles_dir()

    if not profiles_dir.exists():
        return ["default"]

    profiles = [profile_file.stem for profile_file in profiles_dir.glob("*.yaml")]
    return sorted(profiles) if profiles else ["default"]


def get_default_profile() -> RenderProfile:
    """Get default profile (always available).

    Returns:
        Default RenderProfile (built-in A4 values if no default.yaml exists)
    """
    try:
        return load_profile("default")
    except FileNotFoundError:
        return RenderProfile(name="default", description="A4 portrait, 2x supersampling")
