"""
Migration report generator for aggregating statistics and formatting reports.

This module builds the end-of-run report from per-document statuses and the
exporter/downloader statistics, formatting it for console display and JSON
export.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from exporters import format_bytes
from models import MigrationStatus


class MigrationReport:
    """Generates migration reports from document statuses and phase statistics."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize migration report generator.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger('yuque_obsidian_migrator.orchestrator.report')

    def generate_report(
        self,
        statuses: List[MigrationStatus],
        migration_duration: float,
        export_stats: Optional[Dict[str, Any]] = None,
        download_stats: Optional[Dict[str, Any]] = None,
        dry_run: bool = False
    ) -> Dict[str, Any]:
        """
        Generate migration report.

        Args:
            statuses: Per-document outcomes
            migration_duration: Total migration duration in seconds
            export_stats: MarkdownExporter statistics
            download_stats: AssetDownloader statistics
            dry_run: Whether the run wrote nothing

        Returns:
            Migration report dictionary
        """
        export_stats = export_stats or {}
        download_stats = download_stats or {}
        failed = [s for s in statuses if s.status == 'failed']
        # Links of failed documents were never written
        succeeded = [s for s in statuses if s.status != 'failed']

        report = {
            'summary': {
                'documents': len(statuses),
                'converted': len(statuses) - len(failed),
                'failed': len(failed),
                'documents_written': export_stats.get('documents_exported', 0),
                'documents_unchanged': export_stats.get('documents_unchanged', 0),
                'links_rewritten': sum(s.links_rewritten for s in succeeded),
                'links_unresolved': sum(s.links_unresolved for s in succeeded),
                'assets_scheduled': download_stats.get('scheduled', 0),
                'assets_downloaded': download_stats.get('downloaded', 0),
                'assets_skipped': download_stats.get('skipped', 0),
                'assets_failed': download_stats.get('failed', 0),
                'assets_size_bytes': download_stats.get('total_size_bytes', 0),
                'duration_seconds': migration_duration,
                'duration_formatted': self._format_duration(migration_duration),
                'dry_run': dry_run
            },
            'errors': [
                {'document': s.document_key, 'title': s.title, 'error': s.error_message}
                for s in failed
            ],
            'documents': [s.to_dict() for s in statuses],
            'timestamp': datetime.now().isoformat()
        }

        self.logger.info(
            f"Report generated: {report['summary']['documents']} documents, "
            f"{report['summary']['failed']} failed"
        )

        return report

    @staticmethod
    def has_failures(report: Dict[str, Any]) -> bool:
        return report.get('summary', {}).get('failed', 0) > 0

    def _format_duration(self, seconds: float) -> str:
        """Format duration in human-readable format."""
        if seconds < 60:
            return f"{seconds:.1f}s"
        elif seconds < 3600:
            minutes = int(seconds // 60)
            secs = int(seconds % 60)
            return f"{minutes}m {secs}s"
        else:
            hours = int(seconds // 3600)
            minutes = int((seconds % 3600) // 60)
            secs = int(seconds % 60)
            return f"{hours}h {minutes}m {secs}s"

    def format_console_report(self, report: Dict[str, Any]) -> str:
        """
        Format report for console display.

        Args:
            report: Migration report dictionary

        Returns:
            Formatted console string
        """
        summary = report.get('summary', {})
        sections = [
            "=" * 60,
            "MIGRATION REPORT" + (" (DRY RUN)" if summary.get('dry_run') else ""),
            "=" * 60,
            "",
            "Summary:",
            f"  Documents:   {summary.get('documents', 0)}",
            f"  Converted:   {summary.get('converted', 0)}",
            f"  Failed:      {summary.get('failed', 0)}",
            f"  Written:     {summary.get('documents_written', 0)} "
            f"({summary.get('documents_unchanged', 0)} unchanged)",
            f"  Duration:    {summary.get('duration_formatted', '0s')}",
            "",
            "Links:",
            f"  Rewritten:   {summary.get('links_rewritten', 0)}",
            f"  Unresolved:  {summary.get('links_unresolved', 0)}",
            "",
            "Assets:",
            f"  Scheduled:   {summary.get('assets_scheduled', 0)}",
            f"  Downloaded:  {summary.get('assets_downloaded', 0)} "
            f"({format_bytes(summary.get('assets_size_bytes', 0))})",
            f"  Skipped:     {summary.get('assets_skipped', 0)}",
            f"  Failed:      {summary.get('assets_failed', 0)}",
        ]

        errors = report.get('errors', [])
        if errors:
            sections.append("")
            sections.append(f"Errors ({len(errors)}):")
            sections.append("-" * 60)
            for error in errors[:20]:
                sections.append(f"  {error['document']}: {error['error']}")
            if len(errors) > 20:
                sections.append(f"  ... and {len(errors) - 20} more")

        sections.append("=" * 60)

        return "\n".join(sections)

    def export_json_report(self, report: Dict[str, Any], filepath: str) -> None:
        """
        Export report to JSON file.

        Args:
            report: Migration report dictionary
            filepath: Output file path
        """
        try:
            with open(filepath, 'w', encoding='utf-8') as f:
                json.dump(report, f, indent=2, ensure_ascii=False, default=str)

            self.logger.info(f"JSON report exported to {filepath}")

        except OSError as e:
            self.logger.error(f"Failed to export JSON report: {str(e)}")


__all__ = ['MigrationReport']
