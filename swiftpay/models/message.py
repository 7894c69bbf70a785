from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from pydantic import BaseModel, Field


class MessageField(BaseModel):
    name: str
    value: str
    inline: bool = False


class Message(BaseModel):
    """Rendered notification, channel agnostic."""

    title: str
    description: str = ""
    fields: List[MessageField] = Field(default_factory=list)
    color: Optional[int] = None
    footer: Optional[str] = None

    def to_embed(self) -> Dict[str, Any]:
        """Discord embed payload."""
        embed: Dict[str, Any] = {"title": self.title, "description": self.description}
        if self.fields:
            embed["fields"] = [f.model_dump() for f in self.fields]
        if self.color is not None:
            embed["color"] = self.color
        if self.footer:
            embed["footer"] = {"text": self.footer}
        return embed

    def to_text(self) -> str:
        """Plain text body for SMS."""
        parts = [self.title]
        if self.description:
            parts.append(self.description)
        parts.extend(f"{f.name}: {f.value}" for f in self.fields)
        if self.footer:
            parts.append(self.footer)
        return "\n".join(parts)


class MessageRenderer(Protocol):
    """Builds the message one role sees for one event."""

    def render(self, event_type: str, data: Dict[str, Any], role: str) -> Optional[Message]:
        ...


__all__ = ["Message", "MessageField", "MessageRenderer"]
