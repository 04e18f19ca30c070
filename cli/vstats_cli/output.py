from __future__ import annotations

import json
from enum import Enum
from typing import Any, Callable

import yaml

from . import console


class OutputFormat(str, Enum):
    table = "table"
    json = "json"
    yaml = "yaml"


def to_serializable(data: Any) -> Any:
    if hasattr(data, "to_dict"):
        return data.to_dict()
    if isinstance(data, dict):
        return {str(k): to_serializable(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [to_serializable(item) for item in data]
    return data


class Renderer:
    """Presents a command result; chosen once from ``--output``."""

    format: OutputFormat

    def render(self, data: Any, table: Callable[[], None] | None = None) -> None:
        raise NotImplementedError

    @property
    def structured(self) -> bool:
        return self.format is not OutputFormat.table


class TableRenderer(Renderer):
    format = OutputFormat.table

    def render(self, data: Any, table: Callable[[], None] | None = None) -> None:
        if table is not None:
            table()
            return
        payload = to_serializable(data)
        if isinstance(payload, dict):
            for key, value in payload.items():
                console.info(f"{key}: {value}")
            return
        console.print(payload, soft_wrap=True)


class JsonRenderer(Renderer):
    format = OutputFormat.json

    def render(self, data: Any, table: Callable[[], None] | None = None) -> None:
        text = json.dumps(to_serializable(data), indent=2, ensure_ascii=False)
        console.print(text, markup=False, highlight=False, emoji=False, soft_wrap=True)


class YamlRenderer(Renderer):
    format = OutputFormat.yaml

    def render(self, data: Any, table: Callable[[], None] | None = None) -> None:
        text = yaml.safe_dump(
            to_serializable(data),
            sort_keys=False,
            default_flow_style=False,
            allow_unicode=True,
        )
        console.print(text, markup=False, highlight=False, emoji=False, soft_wrap=True, end="")


_RENDERERS: dict[OutputFormat, type[Renderer]] = {
    OutputFormat.table: TableRenderer,
    OutputFormat.json: JsonRenderer,
    OutputFormat.yaml: YamlRenderer,
}


def make_renderer(fmt: OutputFormat | str) -> Renderer:
    return _RENDERERS[OutputFormat(fmt)]()
