"""Apply reporting.

Records what happened to each operation of a recommendation and writes
JSON and Markdown reports once the recommendation reaches a final state.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional


@dataclass
class StepResult:
    """Result of one operation."""
    index: int
    group: int
    description: str
    status: str  # 'passed', 'failed', 'skipped'
    message: str = ''
    duration: float = 0.0
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None


@dataclass
class ApplyReport:
    """Collects per-operation results for one recommendation."""
    recommendation: str
    report_dir: Optional[Path] = None
    steps: list[StepResult] = field(default_factory=list)
    state: str = 'active'  # active, claimed, succeeded, failed
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    success: bool = False
    error: str = ''

    _step_start: Optional[datetime] = field(default=None, repr=False)

    def start(self):
        """Mark apply start."""
        self.started_at = datetime.now()

    def claimed(self):
        """Mark the recommendation claimed; a later failure moves it to failed."""
        self.state = 'claimed'

    def start_step(self):
        """Start timing the next operation."""
        self._step_start = datetime.now()

    def pass_step(self, index: int, group: int, description: str, message: str = ''):
        """Record operation index of group as passed."""
        self._record_step(index, group, description, 'passed', message)

    def fail_step(self, index: int, group: int, description: str, message: str = ''):
        """Record operation index of group as failed with message."""
        self._record_step(index, group, description, 'failed', message)

    def skip_step(self, index: int, group: int, description: str):
        """Record an operation that did not run because an earlier one failed."""
        self.steps.append(StepResult(index=index, group=group, description=description, status='skipped'))

    def _record_step(self, index: int, group: int, description: str, status: str, message: str):
        now = datetime.now()
        duration = (now - self._step_start).total_seconds() if self._step_start else 0.0
        self.steps.append(StepResult(
            index=index,
            group=group,
            description=description,
            status=status,
            message=message,
            duration=duration,
            started_at=self._step_start,
            finished_at=now,
        ))
        self._step_start = None

    def finish(self, success: bool, error: str = ''):
        """Finalize report and write files if a report directory is set."""
        self.finished_at = datetime.now()
        self.success = success
        self.error = error
        if success:
            self.state = 'succeeded'
        elif self.state == 'claimed':
            self.state = 'failed'
        if self.report_dir is not None:
            self.report_dir.mkdir(parents=True, exist_ok=True)
            self._write_json()
            self._write_markdown()

    @property
    def duration(self) -> float:
        """Total apply duration in seconds."""
        if self.finished_at and self.started_at:
            return (self.finished_at - self.started_at).total_seconds()
        return 0.0

    def to_dict(self) -> dict:
        """Return report as dictionary for JSON output."""
        result = {
            'recommendation': self.recommendation,
            'state': self.state,
            'success': self.success,
            'duration_seconds': round(self.duration, 1),
            'steps': [
                {
                    'index': s.index,
                    'group': s.group,
                    'description': s.description,
                    'status': s.status,
                    'message': s.message,
                    'duration': round(s.duration, 1),
                }
                for s in self.steps
            ],
        }
        if self.error:
            result['error'] = self.error
        return result

    def _write_json(self):
        data = self.to_dict()
        data['started_at'] = self.started_at.isoformat() if self.started_at else None
        data['finished_at'] = self.finished_at.isoformat() if self.finished_at else None
        with open(self._report_filename('json'), 'w', encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def _write_markdown(self):
        status = 'SUCCEEDED' if self.success else 'FAILED'
        lines = [
            f"# {self.recommendation}",
            "",
            f"**Status**: {status}",
            f"**State**: {self.state}",
            f"**Date**: {self.started_at.strftime('%Y-%m-%d %H:%M:%S') if self.started_at else 'N/A'}",
            f"**Duration**: {self.duration:.1f}s",
        ]
        if self.error:
            lines.append(f"**Error**: {self.error}")
        lines.extend([
            "",
            "## Operations",
            "",
            "| # | Group | Operation | Status | Duration | Message |",
            "|---|-------|-----------|--------|----------|---------|",
        ])

        for s in self.steps:
            status_emoji = {'passed': '✅', 'failed': '❌', 'skipped': '⏭️'}.get(s.status, '❓')
            lines.append(f"| {s.index} | {s.group} | {s.description} | {status_emoji} {s.status} "
                         f"| {s.duration:.1f}s | {s.message} |")

        lines.extend(["", "---", f"Generated: {datetime.now().isoformat()}"])

        with open(self._report_filename('md'), 'w', encoding="utf-8") as f:
            f.write('\n'.join(lines))

    def _report_filename(self, ext: str) -> Path:
        """Report filename: <timestamp>.<recommendation id>.<status>.<ext>"""
        assert self.report_dir is not None
        timestamp = self.started_at.strftime('%Y%m%d-%H%M%S') if self.started_at else 'unknown'
        status = 'succeeded' if self.success else 'failed'
        slug = self.recommendation.rstrip('/').rsplit('/', 1)[-1]
        if slug:
            return self.report_dir / f"{timestamp}.{slug}.{status}.{ext}"
        return self.report_dir / f"{timestamp}.{status}.{ext}"
