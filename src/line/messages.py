"""Outbound LINE message objects."""

from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _LineModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    def to_api(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class TextMessage(_LineModel):
    type: Literal["text"] = "text"
    text: str = Field(min_length=1)


class UriAction(_LineModel):
    type: Literal["uri"] = "uri"
    label: str = Field(max_length=20)
    uri: str


class ButtonsTemplate(_LineModel):
    type: Literal["buttons"] = "buttons"
    title: str | None = Field(default=None, max_length=40)
    text: str = Field(max_length=160)
    actions: list[UriAction] = Field(min_length=1, max_length=4)


class TemplateMessage(_LineModel):
    type: Literal["template"] = "template"
    alt_text: str = Field(max_length=400)
    template: ButtonsTemplate


Message = Union[TextMessage, TemplateMessage]
