from __future__ import annotations

from io import StringIO
from pathlib import Path
from typing import Any, List

from kubernetes.client import ApiClient
from ruamel.yaml import YAML


def _mk_yaml(*, typ: str = "rt") -> YAML:
	yaml = YAML(typ=typ)
	yaml.width = 4096
	yaml.default_flow_style = False
	if typ == "rt":
		yaml.indent(mapping=2, sequence=4, offset=2)
	return yaml


def _read_yaml_docs(path: Path) -> List[Any]:
	raw = path.read_text(encoding="utf-8")
	yaml = _mk_yaml(typ="safe")
	return [d for d in yaml.load_all(raw) if d is not None]


def _to_plain(obj: Any) -> Any:
	# camelCase keys, None fields dropped, like `kubectl get -o yaml`
	return ApiClient().sanitize_for_serialization(obj)


def _dump_yaml(obj: Any) -> str:
	yaml = _mk_yaml()
	buf = StringIO()
	yaml.dump(_to_plain(obj), buf)
	return buf.getvalue()
