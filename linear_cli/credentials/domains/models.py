"""Domain models for workspace credentials."""
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class CredentialsRecord:
    """Secret-free on-disk record of known workspaces."""
    workspaces: List[str] = field(default_factory=list)
    default: Optional[str] = None

    def to_dict(self) -> dict:
        data = {}
        if self.default:
            data["default"] = self.default
        data["workspaces"] = list(self.workspaces)
        return data


@dataclass
class LegacyRecord:
    """Secrets found inline in an older credentials file, awaiting migration."""
    secrets: dict = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.secrets)
