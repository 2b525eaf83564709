"""Apply reports."""

from reporting.report import ApplyReport, StepResult

__all__ = ['ApplyReport', 'StepResult']
