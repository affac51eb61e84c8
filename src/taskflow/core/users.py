"""User and preference models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .tasks import new_id


class UserRole(Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    MEMBER = "member"
    VIEWER = "viewer"


class Theme(Enum):
    LIGHT = "light"
    DARK = "dark"
    AUTO = "auto"


@dataclass
class UserPreferences:
    """Per-user work and notification preferences."""

    enable_notifications: bool = True
    work_start_time: str = "09:00"
    work_end_time: str = "17:00"
    enable_lifestyle_integration: bool = True
    break_interval_minutes: int = 90
    enable_financial_insights: bool = True
    theme: Theme = Theme.DARK
    language: str = "en"

    def to_dict(self) -> dict:
        return {
            "enable_notifications": self.enable_notifications,
            "work_start_time": self.work_start_time,
            "work_end_time": self.work_end_time,
            "enable_lifestyle_integration": self.enable_lifestyle_integration,
            "break_interval_minutes": self.break_interval_minutes,
            "enable_financial_insights": self.enable_financial_insights,
            "theme": self.theme.value,
            "language": self.language,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UserPreferences":
        defaults = cls()
        return cls(
            enable_notifications=data.get("enable_notifications", defaults.enable_notifications),
            work_start_time=data.get("work_start_time", defaults.work_start_time),
            work_end_time=data.get("work_end_time", defaults.work_end_time),
            enable_lifestyle_integration=data.get(
                "enable_lifestyle_integration", defaults.enable_lifestyle_integration
            ),
            break_interval_minutes=data.get("break_interval_minutes", defaults.break_interval_minutes),
            enable_financial_insights=data.get(
                "enable_financial_insights", defaults.enable_financial_insights
            ),
            theme=Theme(data.get("theme", defaults.theme.value)),
            language=data.get("language", defaults.language),
        )


@dataclass
class User:
    name: str
    email: str
    created_at: datetime
    last_active_at: datetime
    id: str = field(default_factory=new_id)
    role: UserRole = UserRole.MEMBER
    preferences: UserPreferences = field(default_factory=UserPreferences)
    profile_image_url: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "preferences": self.preferences.to_dict(),
            "profile_image_url": self.profile_image_url,
            "created_at": self.created_at.isoformat(),
            "last_active_at": self.last_active_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        return cls(
            id=data["id"],
            name=data["name"],
            email=data["email"],
            role=UserRole(data.get("role", "member")),
            preferences=UserPreferences.from_dict(data.get("preferences") or {}),
            profile_image_url=data.get("profile_image_url"),
            created_at=datetime.fromisoformat(data["created_at"]),
            last_active_at=datetime.fromisoformat(data["last_active_at"]),
        )
