from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest
from kubernetes.client import (
	ApiException,
	V1ClusterRole,
	V1Deployment,
	V1DeploymentSpec,
	V1LabelSelector,
	V1ObjectMeta,
	V1PodTemplateSpec,
	V1PolicyRule,
)


SRC_ROOT = Path(__file__).resolve().parents[1] / "src"

if str(SRC_ROOT) not in sys.path:
	sys.path.insert(0, str(SRC_ROOT))

from kube_edit import retry  # noqa: E402
from kube_edit.store import ObjectStore  # noqa: E402


def _api_error(status: int, reason: str, message: str) -> ApiException:
	exc = ApiException(status=status, reason=reason)
	exc.body = json.dumps({"kind": "Status", "status": "Failure", "message": message, "code": status})
	return exc


def _conflict(resource: str, name: str) -> ApiException:
	return _api_error(
		409,
		"Conflict",
		f'Operation cannot be fulfilled on {resource} "{name}": the object has been modified; please apply your changes to the latest version and try again',
	)


class FakeAppsApi:
	"""In-memory AppsV1Api double that enforces resourceVersion checks.

	``interfere`` simulates that many concurrent writers landing right before
	our replace; ``interfere = -1`` never stops.
	"""

	def __init__(self) -> None:
		self.state: Dict[Tuple[str, str], Dict[str, object]] = {}
		self.read_calls = 0
		self.replace_calls: List[Optional[str]] = []
		self.interfere = 0

	def add(self, name: str, namespace: str = "default", *, replicas: int = 1, rhl: int = 10) -> None:
		self.state[(namespace, name)] = {"replicas": replicas, "rhl": rhl, "rv": 1, "labels": {"app": name}}

	def _concurrent_write(self, s: Dict[str, object]) -> None:
		s["rv"] = int(s["rv"]) + 1
		labels = dict(s["labels"])
		labels["touched-by"] = f"other-{s['rv']}"
		s["labels"] = labels

	def read_namespaced_deployment(self, name: str, namespace: str) -> V1Deployment:
		self.read_calls += 1
		s = self.state.get((namespace, name))
		if s is None:
			raise _api_error(404, "Not Found", f'deployments.apps "{name}" not found')
		return V1Deployment(
			api_version="apps/v1",
			kind="Deployment",
			metadata=V1ObjectMeta(name=name, namespace=namespace, resource_version=str(s["rv"]), labels=dict(s["labels"])),
			spec=V1DeploymentSpec(
				replicas=s["replicas"],
				revision_history_limit=s["rhl"],
				selector=V1LabelSelector(match_labels={"app": name}),
				template=V1PodTemplateSpec(),
			),
		)

	def replace_namespaced_deployment(self, name: str, namespace: str, body: V1Deployment, dry_run: Optional[str] = None) -> V1Deployment:
		self.replace_calls.append(dry_run)
		s = self.state.get((namespace, name))
		if s is None:
			raise _api_error(404, "Not Found", f'deployments.apps "{name}" not found')
		if self.interfere != 0:
			self.interfere -= 1
			self._concurrent_write(s)
		if body.metadata.resource_version != str(s["rv"]):
			raise _conflict("deployments.apps", name)
		if dry_run == "All":
			return body
		s["replicas"] = body.spec.replicas
		s["rhl"] = body.spec.revision_history_limit
		s["labels"] = dict(body.metadata.labels or {})
		s["rv"] = int(s["rv"]) + 1
		return self.read_namespaced_deployment(name, namespace)


class FakeRbacApi:
	"""In-memory RbacAuthorizationV1Api double for ClusterRoles."""

	def __init__(self) -> None:
		self.state: Dict[str, Dict[str, object]] = {}
		self.replace_calls: List[Optional[str]] = []
		self.interfere = 0

	def add(self, name: str, rules: List[Tuple[List[str], List[str], List[str]]]) -> None:
		self.state[name] = {"rules": list(rules), "rv": 1}

	def read_cluster_role(self, name: str) -> V1ClusterRole:
		s = self.state.get(name)
		if s is None:
			raise _api_error(404, "Not Found", f'clusterroles.rbac.authorization.k8s.io "{name}" not found')
		rules = [V1PolicyRule(verbs=list(v), resources=list(r), api_groups=list(g)) for v, r, g in s["rules"]]
		return V1ClusterRole(
			api_version="rbac.authorization.k8s.io/v1",
			kind="ClusterRole",
			metadata=V1ObjectMeta(name=name, resource_version=str(s["rv"])),
			rules=rules or None,
		)

	def replace_cluster_role(self, name: str, body: V1ClusterRole, dry_run: Optional[str] = None) -> V1ClusterRole:
		self.replace_calls.append(dry_run)
		s = self.state[name]
		if self.interfere != 0:
			self.interfere -= 1
			s["rules"] = list(s["rules"]) + [(["get"], ["secrets"], [""])]
			s["rv"] = int(s["rv"]) + 1
		if body.metadata.resource_version != str(s["rv"]):
			raise _conflict("clusterroles.rbac.authorization.k8s.io", name)
		if dry_run == "All":
			return body
		s["rules"] = [(list(r.verbs), list(r.resources or []), list(r.api_groups or [])) for r in (body.rules or [])]
		s["rv"] = int(s["rv"]) + 1
		return self.read_cluster_role(name)


@pytest.fixture
def apps_api() -> FakeAppsApi:
	return FakeAppsApi()


@pytest.fixture
def rbac_api() -> FakeRbacApi:
	return FakeRbacApi()


@pytest.fixture
def store(apps_api: FakeAppsApi, rbac_api: FakeRbacApi) -> ObjectStore:
	return ObjectStore(apps_api, rbac_api)


@pytest.fixture
def sleeps(monkeypatch) -> List[float]:
	recorded: List[float] = []
	monkeypatch.setattr(retry.time, "sleep", lambda s: recorded.append(s))
	return recorded


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path: Path) -> None:
	# never pick up the developer's kubeconfig or KUBE_EDIT_* settings
	monkeypatch.setenv("KUBECONFIG", str(tmp_path / "missing-kubeconfig"))
	monkeypatch.delenv("KUBERNETES_SERVICE_HOST", raising=False)
	for name in ("DRY_RUN", "TIMEOUT", "VERBOSE", "RETRY_STEPS", "RETRY_DELAY"):
		monkeypatch.delenv(f"KUBE_EDIT_{name}", raising=False)
