"""Figma search entities and the host-facing result shape."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Result:
    """A single display-ready search result."""

    title: str
    url: str
    snippet: str | None = None

    def to_dict(self) -> dict[str, str]:
        data = {"title": self.title, "url": self.url}
        if self.snippet is not None:
            data["snippet"] = self.snippet
        return data


@dataclass
class File:
    """A Figma design file."""

    name: str
    url: str
    thumbnail_url: str
    creator_handle: str

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> "File":
        """Create from a file object in a search response."""
        return cls(
            name=item["name"],
            url=item["url"],
            thumbnail_url=item["thumbnail_url"],
            creator_handle=item["creator"]["handle"],
        )

    @classmethod
    def from_recent(cls, item: dict[str, Any]) -> "File":
        """Create from a project's recent file entry.

        Only the link and thumbnail are shown for these, so name and
        creator may be absent.
        """
        return cls(
            name=item.get("name", ""),
            url=item["url"],
            thumbnail_url=item["thumbnail_url"],
            creator_handle=(item.get("creator") or {}).get("handle", ""),
        )


@dataclass
class Project:
    """A Figma project (a "folder" on the wire)."""

    id: str
    name: str
    file_count: int
    recent_files: list[File] = field(default_factory=list)

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> "Project":
        """Create from a folders search element."""
        return cls(
            id=str(item["model"]["id"]),
            name=item["model"]["name"],
            file_count=item["file_count"],
            recent_files=[File.from_recent(f) for f in item.get("recent_files", [])],
        )


@dataclass
class Team:
    """A Figma team."""

    id: str
    name: str
    member_count: int

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> "Team":
        """Create from a teams search element."""
        return cls(
            id=str(item["model"]["id"]),
            name=item["model"]["name"],
            member_count=item["member_count"],
        )
