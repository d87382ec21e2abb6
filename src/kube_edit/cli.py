from __future__ import annotations

import argparse
import time
from typing import Any, Optional, Protocol

from .env import _env_bool, _env_float, _env_int, _env_key
from .errors import ConfigError, EditError
from .types import DEFAULT_RETRY, IOStreams, KubeConfigFlags, ObjectRef, RetryPolicy
from .yaml_utils import _dump_yaml


class CommandOptions(Protocol):
	streams: IOStreams

	def complete(self, args: argparse.Namespace) -> None: ...

	def validate(self) -> None: ...

	def run(self) -> None: ...


def _add_config_flags(ap: argparse.ArgumentParser, *, namespaced: bool) -> None:
	ap.add_argument("--kubeconfig", default=None, help="Path to the kubeconfig file (default: $KUBECONFIG or ~/.kube/config)")
	ap.add_argument("--context", default=None, help="Name of the kubeconfig context to use")
	if namespaced:
		ap.add_argument("-n", "--namespace", default=None, help="Namespace (default: namespace of the current context, then 'default')")
	ap.add_argument("--dry-run", action="store_true", default=None, help=f"Server-side dry run, nothing is persisted (env: {_env_key('DRY_RUN')})")
	ap.add_argument("-o", "--output", choices=("yaml", "name"), default=None, help="Print the updated object as yaml or kind/name")
	ap.add_argument("--timeout", type=float, default=None, help=f"Give up on the update after N seconds, 0 = never (env: {_env_key('TIMEOUT')})")
	ap.add_argument("-v", "--verbose", action="store_true", default=None, help=f"Trace fetch/update attempts on stderr (env: {_env_key('VERBOSE')})")


def _resolve_env_args(args: argparse.Namespace) -> argparse.Namespace:
	args.dry_run = args.dry_run if args.dry_run is not None else _env_bool("DRY_RUN", False)
	args.timeout = args.timeout if args.timeout is not None else _env_float("TIMEOUT", 0.0)
	args.verbose = args.verbose if args.verbose is not None else _env_bool("VERBOSE", False)
	args.retry_steps = _env_int("RETRY_STEPS", DEFAULT_RETRY.steps)
	args.retry_delay = _env_float("RETRY_DELAY", DEFAULT_RETRY.duration)
	return args


def _config_flags_from_args(args: argparse.Namespace) -> KubeConfigFlags:
	try:
		retry = RetryPolicy(
			steps=args.retry_steps,
			duration=args.retry_delay,
			factor=DEFAULT_RETRY.factor,
			jitter=DEFAULT_RETRY.jitter,
		)
	except ValueError as e:
		raise ConfigError(f"invalid retry settings: {e}") from e
	return KubeConfigFlags(
		kubeconfig=args.kubeconfig,
		context=args.context,
		namespace=getattr(args, "namespace", None),
		dry_run=bool(args.dry_run),
		output=args.output or "",
		timeout=max(0.0, float(args.timeout or 0.0)),
		retry=retry,
	)


def _deadline(flags: KubeConfigFlags) -> Optional[float]:
	if flags.timeout <= 0:
		return None
	return time.monotonic() + flags.timeout


def _print_result(streams: IOStreams, flags: KubeConfigFlags, ref: ObjectRef, obj: Any, summary: str) -> None:
	suffix = " (dry run)" if flags.dry_run else ""
	if flags.output == "yaml":
		streams.out.write(_dump_yaml(obj))
	elif flags.output == "name":
		print(f"{ref}", file=streams.out)
	else:
		print(f"{ref} edited ({summary}){suffix}", file=streams.out)


def _run_options(options: CommandOptions, args: argparse.Namespace) -> int:
	try:
		options.complete(args)
		options.validate()
		options.run()
	except EditError as e:
		print(f"ERROR: {e}", file=options.streams.err)
		return e.exit_code
	return 0
