from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from typing import Any, List, Optional

from .cli import _add_config_flags, _config_flags_from_args, _deadline, _print_result, _resolve_env_args, _run_options
from .errors import RemoteError, UsageError
from .kubeconfig import resolve_namespace
from .store import ObjectStore, _load_store
from .types import IOStreams, KubeConfigFlags, ObjectRef
from .updater import update_with_retry
from .yaml_utils import _dump_yaml

EXAMPLES = """\
examples:
  # set the replica count of a deployment in the current namespace
  kubectl edit-deploy web --replicas=5

  # set the revision history limit
  kubectl edit-deploy web --rhl=3

  # show the current values without changing anything
  kubectl edit-deploy web -n team-a
"""


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
	ap = argparse.ArgumentParser(
		prog="kubectl edit-deploy",
		description="View or edit the replica count and revision history limit of a Deployment.",
		epilog=EXAMPLES,
		formatter_class=argparse.RawDescriptionHelpFormatter,
	)
	ap.add_argument("names", nargs="*", metavar="DEPLOYMENT_NAME", help="Deployment to edit")
	ap.add_argument("--replicas", type=int, default=None, help="Number of replicas to set (> 0)")
	ap.add_argument("--rhl", type=int, default=None, help="Revision history limit to set (>= 0)")
	_add_config_flags(ap, namespaced=True)
	return ap.parse_args(argv)


@dataclass
class EditDeployOptions:
	streams: IOStreams = field(default_factory=IOStreams)
	flags: KubeConfigFlags = field(default_factory=KubeConfigFlags)
	store: Optional[ObjectStore] = None

	deployment_name: str = ""
	namespace: str = ""
	replicas: Optional[int] = None
	rhl: Optional[int] = None
	args: List[str] = field(default_factory=list)

	def complete(self, args: argparse.Namespace) -> None:
		self.args = list(args.names)
		if self.args:
			self.deployment_name = self.args[0]
		if not self.deployment_name:
			raise UsageError("deployment name not specified")

		self.replicas = args.replicas
		self.rhl = args.rhl
		self.flags = _config_flags_from_args(args)
		self.namespace = resolve_namespace(self.flags)
		self.streams.log(f"using namespace {self.namespace}")

	def validate(self) -> None:
		if len(self.args) != 1:
			raise UsageError("only one argument is allowed")
		if self.replicas is not None and self.replicas <= 0:
			raise UsageError("invalid number of replicas")
		if self.rhl is not None and self.rhl < 0:
			raise UsageError("invalid value of RevisionHistoryLimit")

	@property
	def ref(self) -> ObjectRef:
		return ObjectRef(kind="Deployment", name=self.deployment_name, namespace=self.namespace)

	def _store(self) -> ObjectStore:
		if self.store is None:
			self.store = _load_store(self.flags)
		return self.store

	def _mutate(self, deployment: Any) -> Any:
		spec = _spec(deployment)
		if self.replicas is not None:
			spec.replicas = self.replicas
		if self.rhl is not None:
			spec.revision_history_limit = self.rhl
		return deployment

	def run(self) -> None:
		if self.replicas is None and self.rhl is None:
			self._show()
			return

		updated = update_with_retry(
			self._store(),
			self.ref,
			self._mutate,
			policy=self.flags.retry,
			deadline=_deadline(self.flags),
			dry_run=self.flags.dry_run,
			log=self.streams.log,
		)
		_print_result(self.streams, self.flags, self.ref, updated, _summary(updated))

	def _show(self) -> None:
		current = self._store().get(self.ref)
		if self.flags.output == "yaml":
			self.streams.out.write(_dump_yaml(current))
			return
		if self.flags.output == "name":
			print(f"{self.ref}", file=self.streams.out)
			return
		print(f"{self.ref}: {_summary(current)}", file=self.streams.out)


def _spec(deployment: Any) -> Any:
	if deployment.spec is None:
		meta = deployment.metadata
		name = meta.name if meta is not None else "?"
		raise RemoteError(f"deployment.apps/{name} has no spec")
	return deployment.spec


def _summary(deployment: Any) -> str:
	spec = _spec(deployment)
	return f"replicas={spec.replicas}, revisionHistoryLimit={spec.revision_history_limit}"


def main(argv: Optional[List[str]] = None) -> int:
	args = _resolve_env_args(_parse_args(argv))
	options = EditDeployOptions(streams=IOStreams(verbose=bool(args.verbose)))
	return _run_options(options, args)


if __name__ == "__main__":
	raise SystemExit(main())
