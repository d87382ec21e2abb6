from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Optional, TextIO


_KIND_RESOURCES = {
	"Deployment": "deployment.apps",
	"ClusterRole": "clusterrole.rbac.authorization.k8s.io",
}


@dataclass(frozen=True)
class ObjectRef:
	kind: str
	name: str
	namespace: Optional[str] = None

	def __post_init__(self) -> None:
		if self.kind not in _KIND_RESOURCES:
			raise ValueError(f"unsupported kind: {self.kind}")

	def __str__(self) -> str:
		return f"{_KIND_RESOURCES[self.kind]}/{self.name}"


@dataclass(frozen=True)
class RetryPolicy:
	steps: int = 5
	duration: float = 0.01
	factor: float = 1.0
	jitter: float = 0.1
	cap: Optional[float] = None

	def __post_init__(self) -> None:
		if self.steps < 1:
			raise ValueError("retry steps must be >= 1")
		if self.duration < 0 or self.factor < 0 or self.jitter < 0:
			raise ValueError("retry duration, factor and jitter must be >= 0")


# Mirrors client-go retry.DefaultRetry.
DEFAULT_RETRY = RetryPolicy()


@dataclass
class IOStreams:
	out: TextIO = field(default_factory=lambda: sys.stdout)
	err: TextIO = field(default_factory=lambda: sys.stderr)
	verbose: bool = False

	def log(self, msg: str) -> None:
		if self.verbose:
			print(msg, file=self.err)


@dataclass
class KubeConfigFlags:
	kubeconfig: Optional[str] = None
	context: Optional[str] = None
	namespace: Optional[str] = None
	dry_run: bool = False
	output: str = ""
	timeout: float = 0.0
	retry: RetryPolicy = DEFAULT_RETRY
