"""Use case for processing every ref update of one push."""

import logging
from dataclasses import dataclass, field

from pushrange.core.classifier import classify_update, resolve_operative_revision
from pushrange.core.describe import describe
from pushrange.core.resolver import NewCommitResolver
from pushrange.core.use_case_errors import format_error_message, log_use_case_error
from pushrange.domain.config import PushRangeConfig
from pushrange.domain.entities import CommitId, RefUpdateReport, UpdateEvent
from pushrange.ports.graph import CommitGraph

logger = logging.getLogger(__name__)


@dataclass
class PostReceiveRequest:
    """Request to process a push.

    Attributes:
        updates: Ref updates in the order git reported them.
    """

    updates: list[UpdateEvent]


@dataclass
class PostReceiveResponse:
    """Per-ref outcome of a push.

    Attributes:
        reports: One report per update, in request order.
        success: False if processing any ref failed.
        error: Message for a failure that stopped the whole push (e.g., the
            tip snapshot could not be taken).
    """

    reports: list[RefUpdateReport] = field(default_factory=list)
    success: bool = True
    error: str | None = None

    @property
    def failed(self) -> list[RefUpdateReport]:
        return [r for r in self.reports if not r.success]

    @property
    def new_commits(self) -> list[CommitId]:
        """Every new commit of the push, in report order."""
        return [c for r in self.reports for c in r.commits]


class PostReceiveUseCase:
    """Classifies, describes and resolves each ref update of a push.

    One tip snapshot is taken per invocation and shared by all updates.
    Refs updated by the same push count with their old ids instead of their
    new tips, so a commit that two of them reach is reported under the first
    such ref rather than hidden from both. Old ids are only substituted for
    refs of a kind the snapshot covers. A failure on one ref is recorded in
    its report; the remaining refs are still processed.
    """

    def __init__(self, graph: CommitGraph, config: PushRangeConfig | None = None) -> None:
        """Initialize the use case.

        Args:
            graph: Commit graph of the pushed-to repository.
            config: Resolver and describe policy. Default: built-in defaults.
        """
        self._graph = graph
        self._config = config or PushRangeConfig.default()
        self._resolver = NewCommitResolver(graph, self._config.resolver)

    def execute(self, request: PostReceiveRequest) -> PostReceiveResponse:
        """Process all updates of the push.

        Args:
            request: The push's ref updates.

        Returns:
            PostReceiveResponse with one report per update.
        """
        try:
            tips = self._resolver.snapshot_tips()
        except (KeyboardInterrupt, SystemExit):
            raise
        except Exception as e:
            log_use_case_error(e, "listing branch tips")
            return PostReceiveResponse(
                success=False, error=format_error_message(e, "listing branch tips")
            )

        updated = {event.ref_name for event in request.updates}
        tips = {name: c for name, c in tips.items() if name not in updated}
        for event in request.updates:
            if not event.is_create and self._resolver.tracks(event.ref_name):
                tips[event.ref_name] = event.old_id

        reported: set[CommitId] = set()
        reports: list[RefUpdateReport] = []
        for event in request.updates:
            report = self._process(event, tips)
            if self._config.resolver.dedupe_batch:
                report.commits = [c for c in report.commits if c not in reported]
                reported.update(report.commits)
            reports.append(report)

        success = all(r.success for r in reports)
        if not success:
            logger.warning(f"{len([r for r in reports if not r.success])} ref(s) failed")
        return PostReceiveResponse(reports=reports, success=success)

    def _process(self, event: UpdateEvent, tips: dict[str, CommitId]) -> RefUpdateReport:
        """Build the report for one update, capturing any failure in it."""
        report = RefUpdateReport(
            event=event, kind=classify_update(event.old_id, event.new_id)
        )
        operation = f"processing {event.ref_name}"
        try:
            report.operative = resolve_operative_revision(
                self._graph, event.old_id, event.new_id
            )
            report.description = describe(
                self._graph,
                report.operative.rev_id,
                tags_only=self._config.describe.tags_only,
            )
            resolved = self._resolver.resolve(event, tips)
            report.range = resolved.range
            report.commits = list(resolved.commits)
        except (KeyboardInterrupt, SystemExit):
            raise
        except Exception as e:
            log_use_case_error(e, operation)
            report.error = format_error_message(e, operation)
        return report
