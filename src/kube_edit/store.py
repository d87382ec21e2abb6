from __future__ import annotations

import json
from typing import Any, Callable, Dict, Optional

from kubernetes.client import ApiException
from urllib3.exceptions import HTTPError

from .errors import ConflictError, EditError, NotFoundError, RemoteError
from .kubeconfig import load_clients
from .types import KubeConfigFlags, ObjectRef


def _status_message(exc: ApiException) -> str:
	body = getattr(exc, "body", None)
	if body:
		try:
			data = json.loads(body)
		except (TypeError, ValueError):
			data = None
		if isinstance(data, dict) and data.get("message"):
			return str(data["message"])
	return " ".join(str(x) for x in (exc.status, exc.reason) if x)


def _translate(exc: ApiException, ref: ObjectRef) -> EditError:
	msg = _status_message(exc)
	if exc.status == 404:
		if not msg or msg.startswith("404"):
			msg = f"{ref} not found"
		return NotFoundError(msg)
	if exc.status == 409:
		return ConflictError(msg)
	return RemoteError(msg, status=exc.status)


class ObjectStore:
	"""Read/replace Deployments and ClusterRoles by reference.

	Every replace sends the object as fetched, resourceVersion included, so
	the API server rejects stale writes with 409.
	"""

	def __init__(self, apps_api: Any, rbac_api: Any) -> None:
		self._apps = apps_api
		self._rbac = rbac_api
		self._getters: Dict[str, Callable[[ObjectRef], Any]] = {
			"Deployment": lambda r: self._apps.read_namespaced_deployment(name=r.name, namespace=r.namespace),
			"ClusterRole": lambda r: self._rbac.read_cluster_role(name=r.name),
		}
		self._updaters: Dict[str, Callable[[ObjectRef, Any, Optional[str]], Any]] = {
			"Deployment": lambda r, body, dry: self._apps.replace_namespaced_deployment(
				name=r.name, namespace=r.namespace, body=body, dry_run=dry
			),
			"ClusterRole": lambda r, body, dry: self._rbac.replace_cluster_role(name=r.name, body=body, dry_run=dry),
		}

	def get(self, ref: ObjectRef) -> Any:
		try:
			return self._getters[ref.kind](ref)
		except ApiException as e:
			raise _translate(e, ref) from e
		except HTTPError as e:
			raise RemoteError(f"cannot reach the API server: {e}") from e

	def update(self, ref: ObjectRef, obj: Any, *, dry_run: bool = False) -> Any:
		dry = "All" if dry_run else None
		try:
			return self._updaters[ref.kind](ref, obj, dry)
		except ApiException as e:
			raise _translate(e, ref) from e
		except HTTPError as e:
			raise RemoteError(f"cannot reach the API server: {e}") from e


def _load_store(flags: KubeConfigFlags) -> ObjectStore:
	clients = load_clients(flags)
	return ObjectStore(clients.apps, clients.rbac)
