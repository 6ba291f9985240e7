"""Apply directive sets to many targets and aggregate the outcomes."""

from collections import Counter, OrderedDict
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import structlog

from sshd_hardening.exceptions import HardenerError, RollbackError
from sshd_hardening.guard import SafetyGuard
from sshd_hardening.paths import LinuxPaths, PathResolver
from sshd_hardening.types import ApplyResult, OutcomeStatus, Target

logger = structlog.get_logger(__name__)


class ApplyOrchestrator:
    """Drive a SafetyGuard once per target.

    Targets are independent: a failure on one never stops the others.
    Targets that resolve to the same file are serialized in one worker;
    distinct files may run in parallel.
    """

    def __init__(
        self,
        guard: SafetyGuard,
        resolver: Optional[PathResolver] = None,
        max_workers: int = 1,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.guard = guard
        self.resolver = resolver or LinuxPaths()
        self.max_workers = max_workers

    def resolve(self, target: Target) -> Path:
        if target.path is not None:
            return target.path
        return self.resolver.config_path(target.kind)

    def run(self, targets: Sequence[Target]) -> List[ApplyResult]:
        """Apply every target and return one result per target, in order."""
        paths = [self.resolve(t) for t in targets]

        groups: Dict[Path, List[int]] = OrderedDict()
        for index, path in enumerate(paths):
            groups.setdefault(path.resolve(), []).append(index)

        results: List[Optional[ApplyResult]] = [None] * len(targets)

        def run_group(indices: List[int]) -> None:
            for i in indices:
                results[i] = self._run_one(paths[i], targets[i])

        workers = min(self.max_workers, len(groups))
        if workers <= 1:
            for indices in groups.values():
                run_group(indices)
        else:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                futures = [pool.submit(run_group, idx) for idx in groups.values()]
                for future in futures:
                    future.result()

        final = [r for r in results if r is not None]
        logger.info("apply_finished", **summarize(final))
        return final

    def _run_one(self, path: Path, target: Target) -> ApplyResult:
        log = logger.bind(path=str(path), kind=target.kind.value)
        try:
            result = self.guard.apply(path, target.directives, target.validator)
        except RollbackError as e:
            log.critical("target_rollback_failed", error=str(e))
            return ApplyResult(
                path=path,
                status=OutcomeStatus.ROLLBACK_FAILED,
                directives=tuple(target.directives),
                diagnostics=e.diagnostics,
                error=str(e),
            )
        except HardenerError as e:
            log.error("target_failed", error=str(e), error_type=type(e).__name__)
            return ApplyResult(
                path=path,
                status=OutcomeStatus.FAILED,
                directives=tuple(target.directives),
                error=str(e),
            )

        log.info(
            "target_finished",
            status=result.status.value,
            changed=len(result.changed_lines),
            validation=result.validation.value,
        )
        return result


def summarize(results: Sequence[ApplyResult]) -> Dict[str, int]:
    """Count results per outcome status."""
    counts = Counter(r.status.value for r in results)
    return {status.value: counts.get(status.value, 0) for status in OutcomeStatus}


def all_succeeded(results: Sequence[ApplyResult]) -> bool:
    return all(r.ok for r in results)


def exit_code(results: Sequence[ApplyResult]) -> int:
    """Process exit status: 0 all succeeded, 2 a rollback failed, 1 otherwise."""
    if any(r.status == OutcomeStatus.ROLLBACK_FAILED for r in results):
        return 2
    return 0 if all_succeeded(results) else 1
