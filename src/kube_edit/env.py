from __future__ import annotations

import os
from typing import Optional

_ENV_PREFIX = "KUBE_EDIT_"


def _env_get(*names: str) -> Optional[str]:
	for n in names:
		v = os.environ.get(n)
		if v is None:
			continue
		v = v.strip()
		if v == "":
			continue
		return v
	return None


def _env_key(name: str) -> str:
	return f"{_ENV_PREFIX}{name}"


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
	return _env_get(_env_key(name)) or default


def _env_int(name: str, default: Optional[int] = None) -> Optional[int]:
	v = _env_get(_env_key(name))
	if v is None:
		return default
	try:
		return int(v)
	except ValueError:
		return default


def _env_float(name: str, default: Optional[float] = None) -> Optional[float]:
	v = _env_get(_env_key(name))
	if v is None:
		return default
	try:
		return float(v)
	except ValueError:
		return default


def _env_bool(name: str, default: bool = False) -> bool:
	v = _env_get(_env_key(name))
	if v is None:
		return default
	v = v.strip().lower()
	if v in ("1", "true", "yes", "y", "on"):
		return True
	if v in ("0", "false", "no", "n", "off"):
		return False
	return default
