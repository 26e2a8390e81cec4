import json
from typing import Any

import yaml
from bson import json_util
from bson.json_util import RELAXED_JSON_OPTIONS

from shardplan.core.ports.render import Renderer


def to_plain(data: Any) -> Any:
    """
    Convert BSON values (ObjectId, datetime, MinKey/MaxKey, ...) nested in
    data into plain JSON-compatible values using MongoDB Extended JSON.
    """
    return json.loads(json_util.dumps(data, json_options=RELAXED_JSON_OPTIONS))


class JsonRenderer(Renderer):
    def render(self, data: Any) -> str:
        return json.dumps(to_plain(data), indent=2, sort_keys=False)


class YamlRenderer(Renderer):
    def render(self, data: Any) -> str:
        return yaml.safe_dump(to_plain(data), sort_keys=False)
