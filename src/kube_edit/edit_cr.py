from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from typing import Any, List, Optional

from kubernetes.client import V1PolicyRule

from .cli import _add_config_flags, _config_flags_from_args, _deadline, _print_result, _resolve_env_args, _run_options
from .errors import UsageError
from .store import ObjectStore, _load_store
from .types import IOStreams, KubeConfigFlags, ObjectRef
from .updater import update_with_retry

EXAMPLES = """\
examples:
  # allow update/delete on two resources of the data.falcon.io group
  kubectl edit-cr my-role --verbs=update,delete --resources=downloads,links --groups=data.falcon.io

  # core group ("") when --groups is empty or omitted
  kubectl edit-cr viewer --verbs=list,watch --resources=configmaps --groups=
"""


def _split_list(raw: Optional[str]) -> List[str]:
	if raw is None:
		return []
	return [p.strip() for p in raw.split(",") if p.strip()]


def _split_groups(raw: Optional[str]) -> List[str]:
	# an empty entry is the core API group
	if raw is None or not raw.strip():
		return [""]
	return [p.strip() for p in raw.split(",")]


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
	ap = argparse.ArgumentParser(
		prog="kubectl edit-cr",
		description="Append a rule to a ClusterRole.",
		epilog=EXAMPLES,
		formatter_class=argparse.RawDescriptionHelpFormatter,
	)
	ap.add_argument("names", nargs="*", metavar="CLUSTERROLE_NAME", help="ClusterRole to edit")
	ap.add_argument("--verbs", default=None, help="Comma separated verbs")
	ap.add_argument("--resources", default=None, help="Comma separated resources")
	ap.add_argument("--groups", default=None, help="Comma separated API groups (empty = core group)")
	_add_config_flags(ap, namespaced=False)
	return ap.parse_args(argv)


@dataclass
class EditClusterRoleOptions:
	streams: IOStreams = field(default_factory=IOStreams)
	flags: KubeConfigFlags = field(default_factory=KubeConfigFlags)
	store: Optional[ObjectStore] = None

	cluster_role_name: str = ""
	verbs: List[str] = field(default_factory=list)
	resources: List[str] = field(default_factory=list)
	api_groups: List[str] = field(default_factory=lambda: [""])
	args: List[str] = field(default_factory=list)

	def complete(self, args: argparse.Namespace) -> None:
		self.args = list(args.names)
		if self.args:
			self.cluster_role_name = self.args[0]
		if not self.cluster_role_name:
			raise UsageError("ClusterRole name not specified")

		self.verbs = _split_list(args.verbs)
		self.resources = _split_list(args.resources)
		self.api_groups = _split_groups(args.groups)
		self.flags = _config_flags_from_args(args)

	def validate(self) -> None:
		if len(self.args) != 1:
			raise UsageError("only one argument is allowed")
		if not self.verbs:
			raise UsageError("verb field is empty")
		if not self.resources:
			raise UsageError("resource field is empty")

	@property
	def ref(self) -> ObjectRef:
		return ObjectRef(kind="ClusterRole", name=self.cluster_role_name)

	def _store(self) -> ObjectStore:
		if self.store is None:
			self.store = _load_store(self.flags)
		return self.store

	def _mutate(self, role: Any) -> Any:
		# append only: existing rules are never merged or deduplicated
		rule = V1PolicyRule(verbs=list(self.verbs), resources=list(self.resources), api_groups=list(self.api_groups))
		role.rules = list(role.rules or []) + [rule]
		return role

	def run(self) -> None:
		updated = update_with_retry(
			self._store(),
			self.ref,
			self._mutate,
			policy=self.flags.retry,
			deadline=_deadline(self.flags),
			dry_run=self.flags.dry_run,
			log=self.streams.log,
		)
		_print_result(self.streams, self.flags, self.ref, updated, f"rules={len(updated.rules or [])}")


def main(argv: Optional[List[str]] = None) -> int:
	args = _resolve_env_args(_parse_args(argv))
	options = EditClusterRoleOptions(streams=IOStreams(verbose=bool(args.verbose)))
	return _run_options(options, args)


if __name__ == "__main__":
	raise SystemExit(main())
