"""Grafana dashboard data models.

Typed, read-only views of the parts of a dashboard JSON document that the
documentation generator uses. Unknown fields are ignored; missing or null
fields fall back to empty values.
"""

from typing import Any, List, Tuple

from pydantic import BaseModel, Field, ValidationInfo, field_validator, model_validator

ROW_PANEL_TYPE = "row"


class _DashboardElement(BaseModel):
    """Shared configuration for dashboard JSON models."""

    class Config:
        extra = "ignore"
        frozen = True

    @field_validator("*", mode="before")
    @classmethod
    def _null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None and info.field_name is not None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value


class Link(_DashboardElement):
    """Dashboard link shown in the dashboard header."""

    type: str = Field("", description="Link type (link, dashboards)")
    title: str = Field("", description="Link title")
    url: str = Field("", description="Link target URL")


class Datasource(_DashboardElement):
    """Datasource reference of a query target."""

    type: str = Field("", description="Datasource plugin type")
    uid: str = Field("", description="Datasource UID")

    @model_validator(mode="before")
    @classmethod
    def _legacy_name(cls, data: Any) -> Any:
        # Older dashboards reference datasources by name
        if isinstance(data, str):
            return {"uid": data}
        return data


class Target(_DashboardElement):
    """Query target attached to a panel."""

    expr: str = Field("", description="PromQL expression")
    datasource: Datasource = Field(default_factory=Datasource)


class Panel(_DashboardElement):
    """Grafana dashboard panel."""

    title: str = ""
    description: str = ""
    type: str = ""
    targets: Tuple[Target, ...] = ()

    @property
    def is_row(self) -> bool:
        return self.type == ROW_PANEL_TYPE


class RowPanel(Panel):
    """Top-level panel that may group nested panels."""

    panels: Tuple[Panel, ...] = ()

    def get_panel(self) -> Panel:
        """Convert to a plain Panel, dropping the nested panels."""
        return Panel(
            title=self.title,
            description=self.description,
            type=self.type,
            targets=self.targets,
        )


class Dashboard(_DashboardElement):
    """A complete Grafana dashboard."""

    title: str = ""
    description: str = ""
    links: Tuple[Link, ...] = ()
    panels: Tuple[RowPanel, ...] = ()

    def get_panels(self) -> List[Panel]:
        """
        Flatten the panel hierarchy.

        Each top-level panel contributes its nested panels followed by
        itself as a plain panel. Only one level of nesting is unwrapped.
        """
        panels: List[Panel] = []
        for row in self.panels:
            panels.extend(row.panels)
            panels.append(row.get_panel())
        return panels
