"""Kubeconfig handling: namespace resolution and API client construction.

Clients are built per invocation from an explicit ``ApiClient`` so nothing
touches the process-wide default configuration of the kubernetes package.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from kubernetes import client, config
from kubernetes.config.config_exception import ConfigException
from ruamel.yaml.error import YAMLError

from .errors import ConfigError
from .types import KubeConfigFlags
from .yaml_utils import _read_yaml_docs

DEFAULT_NAMESPACE = "default"
SERVICE_ACCOUNT_NAMESPACE = Path("/var/run/secrets/kubernetes.io/serviceaccount/namespace")


@dataclass(frozen=True)
class KubernetesClientSet:
	apps: client.AppsV1Api
	rbac: client.RbacAuthorizationV1Api


def _kubeconfig_paths(explicit: Optional[str]) -> List[Path]:
	if explicit:
		return [Path(explicit).expanduser()]
	env = os.environ.get("KUBECONFIG", "").strip()
	if env:
		return [Path(p).expanduser() for p in env.split(os.pathsep) if p.strip()]
	return [Path("~/.kube/config").expanduser()]


def _load_kubeconfig_docs(paths: List[Path]) -> List[Dict[str, Any]]:
	docs: List[Dict[str, Any]] = []
	for p in paths:
		if not p.is_file():
			continue
		try:
			loaded = _read_yaml_docs(p)
		except (OSError, UnicodeDecodeError, YAMLError) as e:
			raise ConfigError(f"cannot read kubeconfig {p}: {e}") from e
		docs.extend(d for d in loaded if isinstance(d, dict))
	return docs


def _current_context(docs: List[Dict[str, Any]]) -> Optional[str]:
	# first file that sets current-context wins
	for d in docs:
		cur = str(d.get("current-context") or "").strip()
		if cur:
			return cur
	return None


def _context_namespace(docs: List[Dict[str, Any]], context_name: str) -> Optional[str]:
	# first definition of a context wins
	for d in docs:
		for entry in d.get("contexts") or []:
			if not isinstance(entry, dict) or entry.get("name") != context_name:
				continue
			ctx = entry.get("context") or {}
			ns = str(ctx.get("namespace") or "").strip() if isinstance(ctx, dict) else ""
			return ns or None
	return None


def _in_cluster_namespace(sa_path: Optional[Path] = None) -> Optional[str]:
	if not os.environ.get("KUBERNETES_SERVICE_HOST"):
		return None
	try:
		ns = (sa_path or SERVICE_ACCOUNT_NAMESPACE).read_text(encoding="utf-8").strip()
	except OSError:
		return None
	return ns or None


def resolve_namespace(flags: KubeConfigFlags) -> str:
	"""Pick the namespace the way kubectl does.

	An explicit ``--namespace`` wins, then the namespace bound to the active
	context, then (with no kubeconfig at all) the in-cluster service account
	namespace, and finally ``default``.
	"""
	if flags.namespace:
		return flags.namespace

	docs = _load_kubeconfig_docs(_kubeconfig_paths(flags.kubeconfig))
	if docs:
		ctx_name = flags.context or _current_context(docs)
		if ctx_name:
			ns = _context_namespace(docs, ctx_name)
			if ns:
				return ns
	else:
		ns = _in_cluster_namespace()
		if ns:
			return ns

	return DEFAULT_NAMESPACE


def _new_api_client(flags: KubeConfigFlags) -> client.ApiClient:
	paths = _kubeconfig_paths(flags.kubeconfig)
	existing = [str(p) for p in paths if p.is_file()]
	if flags.kubeconfig and not existing:
		raise ConfigError(f"kubeconfig not found: {flags.kubeconfig}")

	if existing:
		try:
			# the loader merges a pathsep-joined list the same way KUBECONFIG does
			return config.new_client_from_config(config_file=os.pathsep.join(existing), context=flags.context)
		except ConfigException as e:
			raise ConfigError(f"invalid kubeconfig: {e}") from e

	cfg = client.Configuration()
	try:
		config.load_incluster_config(client_configuration=cfg)
	except ConfigException as e:
		raise ConfigError(f"no kubeconfig found and not running in-cluster: {e}") from e
	return client.ApiClient(configuration=cfg)


def load_clients(flags: KubeConfigFlags) -> KubernetesClientSet:
	api_client = _new_api_client(flags)
	return KubernetesClientSet(
		apps=client.AppsV1Api(api_client),
		rbac=client.RbacAuthorizationV1Api(api_client),
	)
