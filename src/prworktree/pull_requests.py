"""Idempotent create-or-update of a pull request for a head/base pair.

The reconciler probes for an open pull request, updates it when found and
creates one otherwise. Every remote step carries a failure policy:

- ``RECOVERABLE`` steps warn and continue (the probe is fail-open, an update
  failure is reported as ``update-failed``, side channels report ``failed``);
- ``FATAL`` steps raise a ``ServiceFailure`` and no identifiers are emitted.

Side channels (labels, auto-merge) run only once a valid record exists and
never change the record's operation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Sequence

from . import exec as exec_util
from . import log as prworktree_log
from .config import TimeoutConfig
from .git import github_repo_slug
from .models import (
    MERGE_METHOD_VALUES,
    ChangeRequestRecord,
    MergeMethod,
    PrOperation,
    SideChannelStatus,
    is_valid_pr_url,
    pr_number_from_url,
)
from .remote import GithubClient, GitRemote
from .services import (
    BaseService,
    DependencyMissingError,
    ExternalCommandFailedError,
    RemoteTimeoutError,
    UnexpectedStateError,
    ValidationFailedError,
)


class FailurePolicy(str, Enum):
    RECOVERABLE = "recoverable"
    FATAL = "fatal"


class PullRequestStep(str, Enum):
    PROBE = "probe"
    UPDATE = "update"
    INFO = "info"
    REPO = "repo"
    CREATE = "create"
    LABELS = "labels"
    AUTO_MERGE = "auto-merge"


STEP_POLICIES: dict[PullRequestStep, FailurePolicy] = {
    PullRequestStep.PROBE: FailurePolicy.RECOVERABLE,
    PullRequestStep.UPDATE: FailurePolicy.RECOVERABLE,
    PullRequestStep.INFO: FailurePolicy.RECOVERABLE,
    PullRequestStep.REPO: FailurePolicy.RECOVERABLE,
    PullRequestStep.CREATE: FailurePolicy.FATAL,
    PullRequestStep.LABELS: FailurePolicy.RECOVERABLE,
    PullRequestStep.AUTO_MERGE: FailurePolicy.RECOVERABLE,
}

_RECOVERY_NOTES = {
    PullRequestStep.PROBE: "assuming no open pull request exists",
    PullRequestStep.UPDATE: "the pull request exists and can be updated manually",
    PullRequestStep.INFO: "constructing the URL from repository info",
    PullRequestStep.REPO: "falling back to the origin remote URL",
    PullRequestStep.LABELS: "labels were not applied",
    PullRequestStep.AUTO_MERGE: "auto-merge was not enabled",
}


def parse_labels(values: Iterable[str] | None) -> list[str]:
    """Split comma-separated label values, trimming and de-duplicating in order.

    Example:
        >>> parse_labels(["bug, docs", "bug", " ", "ci"])
        ['bug', 'docs', 'ci']
    """
    labels: list[str] = []
    seen: set[str] = set()
    for raw in values or ():
        for item in raw.split(","):
            label = item.strip()
            if not label or label in seen:
                continue
            labels.append(label)
            seen.add(label)
    return labels


def parse_merge_method(raw: str | None) -> MergeMethod | None:
    """Validate an optional merge method.

    Example:
        >>> parse_merge_method(" Squash ")
        <MergeMethod.SQUASH: 'squash'>
        >>> parse_merge_method("") is None
        True
    """
    if raw is None or not raw.strip():
        return None
    normalized = raw.strip().lower()
    if normalized not in MERGE_METHOD_VALUES:
        raise ValidationFailedError(
            f"invalid merge method {raw!r}; expected one of {', '.join(MERGE_METHOD_VALUES)}",
            recovery_hint="pass --merge-method merge, squash, rebase or never",
        )
    return MergeMethod(normalized)


@dataclass(frozen=True)
class PullRequestRequest:
    base: str
    head: str
    title: str
    body: str
    labels: Sequence[str] = ()
    merge_method: str | None = None


@dataclass(frozen=True)
class PullRequestOutcome:
    """Final record plus the independent side-channel statuses."""

    record: ChangeRequestRecord
    labels_status: SideChannelStatus = SideChannelStatus.SKIPPED
    automerge_status: SideChannelStatus = SideChannelStatus.SKIPPED

    @property
    def exit_code(self) -> int:
        return 0

    def outputs(self) -> dict[str, str]:
        outputs = self.record.outputs()
        outputs["labels-status"] = self.labels_status.value
        outputs["automerge-status"] = self.automerge_status.value
        return outputs


@dataclass
class CreateOrUpdatePullRequestService(BaseService[PullRequestRequest, PullRequestOutcome]):
    """Reconcile one pull request for ``head`` -> ``base``."""

    client: GithubClient
    timeouts: TimeoutConfig = field(default_factory=TimeoutConfig)
    origin: GitRemote | None = None

    def _run(self, request: PullRequestRequest) -> PullRequestOutcome:
        _require_fields(request)
        merge_method = parse_merge_method(request.merge_method)
        labels = parse_labels(request.labels)

        number = self._find_existing(request)
        if number is not None:
            operation = self._update(number, request)
            url = self._resolve_url(number)
        else:
            number, url = self._create(request)
            operation = PrOperation.CREATED

        try:
            record = ChangeRequestRecord(number=number, url=url, operation=operation)
        except ValueError as exc:
            raise UnexpectedStateError(
                f"invalid pull request identifiers: {exc}",
                recovery_hint="inspect the pull request with `gh pr view`",
            ) from exc
        prworktree_log.success(
            f"Pull request #{record.number} {record.operation.value}: {record.url}"
        )

        return PullRequestOutcome(
            record=record,
            labels_status=self._apply_labels(record.number, labels),
            automerge_status=self._enable_auto_merge(record.number, merge_method),
        )

    def _settle(
        self, step: PullRequestStep, call: exec_util.BoundedResult
    ) -> exec_util.BoundedResult:
        """Apply the step's failure policy to a finished call.

        Successful calls pass through. Recoverable failures are logged and
        returned for the caller to branch on; fatal failures raise.
        """
        if call.ok:
            return call
        if exec_util.is_missing_command(call):
            raise DependencyMissingError(
                call.describe(),
                recovery_hint="install the GitHub CLI (gh) or set PRWORKTREE_GH_PATH",
            )
        if STEP_POLICIES[step] is FailurePolicy.RECOVERABLE:
            prworktree_log.warning(f"{call.describe()}; {_RECOVERY_NOTES[step]}")
            return call
        if call.timed_out:
            raise RemoteTimeoutError(
                call.describe(),
                recovery_hint="retry later; a rerun will find the pull request if it was created",
            )
        raise ExternalCommandFailedError(
            call.describe(),
            recovery_hint="check `gh auth status` and that both branches exist on the remote",
        )

    def _find_existing(self, request: PullRequestRequest) -> int | None:
        probe = self._settle(
            PullRequestStep.PROBE,
            self.client.find_open_pr(request.head, request.base, timeout=self.timeouts.pr_check),
        )
        if not probe.ok or probe.value is None:
            return None
        prworktree_log.info(f"Found open pull request #{probe.value}")
        return probe.value

    def _update(self, number: int, request: PullRequestRequest) -> PrOperation:
        edited = self._settle(
            PullRequestStep.UPDATE,
            self.client.edit_pr(
                number, request.title, request.body, timeout=self.timeouts.pr_update
            ),
        )
        if not edited.ok:
            return PrOperation.UPDATE_FAILED
        return PrOperation.UPDATED

    def _resolve_url(self, number: int) -> str:
        viewed = self._settle(
            PullRequestStep.INFO, self.client.view_pr_url(number, timeout=self.timeouts.pr_info)
        )
        if viewed.ok and is_valid_pr_url(viewed.value):
            return viewed.value

        slug = self._repo_slug()
        if slug is None:
            raise UnexpectedStateError(
                f"cannot determine URL for pull request #{number}",
                recovery_hint="pass --repo owner/name or configure a GitHub origin remote",
            )
        return f"https://github.com/{slug}/pull/{number}"

    def _repo_slug(self) -> str | None:
        viewed = self._settle(
            PullRequestStep.REPO, self.client.repo_slug(timeout=self.timeouts.pr_info)
        )
        if viewed.ok and viewed.value:
            return viewed.value
        if self.origin is None:
            return None
        return github_repo_slug(self.origin.url())

    def _create(self, request: PullRequestRequest) -> tuple[int, str]:
        created = self._settle(
            PullRequestStep.CREATE,
            self.client.create_pr(
                request.base,
                request.head,
                request.title,
                request.body,
                timeout=self.timeouts.pr_create,
            ),
        )
        url = created.value or ""
        number = pr_number_from_url(url)
        if number is None:
            raise UnexpectedStateError(
                f"failed to extract pull request number from {url!r}",
                recovery_hint="inspect the pull request with `gh pr list --head <branch>`",
            )
        return number, url.strip()

    def _apply_labels(self, number: int, labels: Sequence[str]) -> SideChannelStatus:
        if not labels:
            return SideChannelStatus.SKIPPED
        applied = self._settle(
            PullRequestStep.LABELS,
            self.client.add_labels(number, labels, timeout=self.timeouts.side_channel),
        )
        if not applied.ok:
            return SideChannelStatus.FAILED
        prworktree_log.info(f"Labels applied: {', '.join(labels)}")
        return SideChannelStatus.ENABLED

    def _enable_auto_merge(
        self, number: int, method: MergeMethod | None
    ) -> SideChannelStatus:
        if method is None or method is MergeMethod.NEVER:
            return SideChannelStatus.SKIPPED
        enabled = self._settle(
            PullRequestStep.AUTO_MERGE,
            self.client.enable_auto_merge(number, method, timeout=self.timeouts.side_channel),
        )
        if not enabled.ok:
            return SideChannelStatus.FAILED
        prworktree_log.info(f"Auto-merge enabled ({method.value})")
        return SideChannelStatus.ENABLED


def _require_fields(request: PullRequestRequest) -> None:
    missing = [
        name
        for name in ("base", "head", "title", "body")
        if not str(getattr(request, name) or "").strip()
    ]
    if missing:
        raise ValidationFailedError(
            f"required arguments not provided: {', '.join(missing)}",
            recovery_hint="usage: prworktree create-pr BASE HEAD TITLE BODY",
        )
