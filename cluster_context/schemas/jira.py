"""
cluster_context/schemas/jira.py

Response schemas for ticket tracker searches.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _JiraModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)


class JiraNamed(_JiraModel):
    name: str = ""


class JiraIssueFields(_JiraModel):
    summary: str = ""
    issue_type: JiraNamed | None = Field(default=None, alias="issuetype")
    priority: JiraNamed | None = None
    status: JiraNamed | None = None
    created: str | None = None


class JiraIssue(_JiraModel):
    key: str
    fields: JiraIssueFields = Field(default_factory=JiraIssueFields)


class JiraSearchResult(_JiraModel):
    start_at: int = Field(default=0, alias="startAt")
    max_results: int = Field(default=0, alias="maxResults")
    total: int = 0
    issues: list[JiraIssue] = Field(default_factory=list)
