"""Report sinks and report-tree layout."""

from jact.report.html import HtmlReportSink
from jact.report.layout import finish_report_tree, prepare_report_tree
from jact.report.sink import ReportSink
from jact.report.summary import SummaryReportSink

__all__ = [
    "HtmlReportSink",
    "ReportSink",
    "SummaryReportSink",
    "finish_report_tree",
    "prepare_report_tree",
]
