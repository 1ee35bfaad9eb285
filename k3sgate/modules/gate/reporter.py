"""Build, persist and export gate reports."""
import json
import logging
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .models import GateState, ProbeOutcome, Report, RoundResult, Target, TerminationReason

logger = logging.getLogger("gate.reporter")

REPORT_FORMATS = ("text", "json", "both")


class Reporter:
    """Turns the final gate state into a Report and writes it to its sinks.

    Args:
        probe_name: Name of the probe the gate ran
        title: Heading of the text report
        path: Text report path; None keeps the report in memory only
        fmt: ``text``, ``json`` or ``both`` (json goes next to the text file)
        export_env_file: File to append ``export_var=path`` to, e.g. ``$GITHUB_ENV``
        export_var: Variable name used for the export
    """

    def __init__(
        self,
        probe_name: str,
        title: Optional[str] = None,
        path: Optional[str] = None,
        fmt: str = "text",
        export_env_file: Optional[str] = None,
        export_var: str = "READINESS_REPORT",
    ):
        if fmt not in REPORT_FORMATS:
            raise ValueError(f"Unknown report format: {fmt!r}")
        self.probe_name = probe_name
        self.title = title or f"{probe_name} Readiness Report"
        self.path = path
        self.fmt = fmt
        self.export_env_file = export_env_file
        self.export_var = export_var

    @classmethod
    def for_probe(cls, probe, path: Optional[str] = None, **kwargs) -> 'Reporter':
        """Reporter using the probe's own title, file name and export variable."""
        return cls(
            probe_name=probe.name,
            title=getattr(probe, "report_title", None),
            path=path,
            export_var=getattr(probe, "export_var", None) or "READINESS_REPORT",
            **kwargs,
        )

    def build(
        self,
        targets: List[Target],
        state: GateState,
        history: Iterable[RoundResult],
        reason: TerminationReason,
    ) -> Report:
        """Partition the requested targets into ready and not ready.

        Anything still in ``state.remaining`` is not ready; everything else
        succeeded in some round.
        """
        last: Dict[Target, ProbeOutcome] = {}
        for result in history:
            for outcome in result.outcomes:
                last[outcome.target] = outcome

        ready = [t for t in targets if t not in state.remaining]
        not_ready = [t for t in targets if t in state.remaining]
        return Report(
            probe=self.probe_name,
            status=state.status,
            reason=reason,
            total=len(targets),
            ready=ready,
            not_ready=not_ready,
            rounds=state.rounds,
            elapsed=state.elapsed,
            last_outcomes=last,
        )

    def render_text(self, report: Report) -> str:
        lines = [
            f"=== {self.title} ===",
            f"Timestamp: {report.generated_at.strftime('%Y-%m-%d %H:%M:%S %Z')}",
            f"Probe: {report.probe}",
            f"Result: {report.status.value} ({report.reason.value}) "
            f"after {report.rounds} rounds, {report.elapsed:.1f}s",
            f"Total Targets: {report.total}",
            f"Ready: {len(report.ready)}",
            f"Not Ready: {len(report.not_ready)}",
            "",
        ]
        for target in report.ready + report.not_ready:
            is_ready = target in report.ready
            lines.append(f"Target: {target.label} ({target.address})")
            lines.append(f"  Status: {'READY' if is_ready else 'NOT READY'}")
            outcome = report.last_outcomes.get(target)
            if outcome is not None:
                lines.append(f"  Last Check: attempt {outcome.attempt} - {outcome.detail}")
            lines.append("")
        return "\n".join(lines)

    def render_json(self, report: Report) -> str:
        return json.dumps(report.to_dict(), indent=2)

    def write(self, report: Report) -> List[str]:
        """Persist the report. Returns the paths written."""
        if not self.path:
            return []
        written = []
        text_path = Path(self.path)
        text_path.parent.mkdir(parents=True, exist_ok=True)
        if self.fmt in ("text", "both"):
            text_path.write_text(self.render_text(report))
            written.append(str(text_path))
        if self.fmt in ("json", "both"):
            json_path = text_path if self.fmt == "json" else text_path.with_suffix(".json")
            json_path.write_text(self.render_json(report))
            written.append(str(json_path))
        report.path = written[0]
        logger.info(f"Report saved to: {report.path}")
        return written

    def export(self, report: Report) -> None:
        """Append ``export_var=path`` to the pipeline environment file."""
        if not self.export_env_file or not report.path:
            return
        with open(self.export_env_file, "a") as f:
            f.write(f"{self.export_var}={report.path}\n")
        logger.debug(f"Exported {self.export_var}={report.path} to {self.export_env_file}")

    def publish(self, report: Report) -> bool:
        """Write and export the report; return the overall success signal.

        A sink that cannot be written is logged and skipped. The verdict
        depends only on which targets are ready.
        """
        try:
            self.write(report)
        except OSError as e:
            logger.error(f"Failed to write report to {self.path}: {e}")
        try:
            self.export(report)
        except OSError as e:
            logger.error(f"Failed to export {self.export_var} to {self.export_env_file}: {e}")
        return report.success


def default_report_path(probe, report_dir: str, fmt: str = "text") -> str:
    """Report location used when the caller does not pick one."""
    name = getattr(probe, "report_name", None) or f"{probe.name}-readiness-report"
    suffix = ".json" if fmt == "json" else ".txt"
    return os.path.join(report_dir, name + suffix)
