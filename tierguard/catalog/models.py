from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from tierguard.compliance.models import UNKNOWN_PROJECT


class Project(BaseModel):
    id: int
    name: str


class InstanceRegistration(BaseModel):
    id: int
    url: str
    environment: str = ""          # free-text tier label, e.g. "Prod-EU", "uat2"
    region: str = "unknown"
    project_id: int


class CatalogSnapshot(BaseModel):
    """Read-only view of the registered instances for one evaluation cycle."""
    instances: List[InstanceRegistration] = Field(default_factory=list)
    projects: List[Project] = Field(default_factory=list)

    def project(self, project_id: int) -> Optional[Project]:
        for p in self.projects:
            if p.id == project_id:
                return p
        return None

    def project_name(self, project_id: int) -> str:
        p = self.project(project_id)
        return p.name if p is not None else UNKNOWN_PROJECT
