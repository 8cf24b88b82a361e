"""
Migration orchestrator for coordinating the complete migration pipeline.

This module sequences the migration phases: Discover → Convert/Export →
Download assets → Report. Documents convert concurrently; a failed document
is recorded and the batch continues.
"""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from tqdm import tqdm

from converters import DocumentConverter
from exporters import AssetDownloader, MarkdownExporter
from fetchers import DocumentLoader, build_mapping
from logger import ProgressTracker, log_section
from models import ConversionSettings, DocumentMapping, DocumentRecord, MigrationStatus
from orchestrator.migration_report import MigrationReport
from yuque_client import YuqueClient


class MigrationOrchestrator:
    """Central coordinator sequencing all migration phases."""

    def __init__(
        self,
        settings: ConversionSettings,
        client: Optional[YuqueClient] = None,
        namespaces: Optional[Iterable[str]] = None,
        dry_run: bool = False,
        show_progress: bool = True,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize migration orchestrator.

        Args:
            settings: Conversion settings
            client: HTTP client for redirects and downloads (created from settings if omitted)
            namespaces: Optional namespace filter
            dry_run: Convert without writing documents or downloading assets
            show_progress: Display a progress bar during conversion
            logger: Optional logger instance
        """
        self.settings = settings
        self.namespaces = list(namespaces) if namespaces else None
        self.dry_run = dry_run
        self.show_progress = show_progress
        self.logger = logger or logging.getLogger('yuque_obsidian_migrator.orchestrator')

        self._owns_client = client is None
        self.client = client or YuqueClient.from_settings(settings)

        self.loader = DocumentLoader(settings.meta_dir, logger=self.logger)
        self.exporter = MarkdownExporter(settings.output_dir, dry_run=dry_run, logger=self.logger)
        self.report_generator = MigrationReport(logger=self.logger)

        self.logger.info(
            f"MigrationOrchestrator initialized: meta={settings.meta_dir}, "
            f"output={settings.output_dir}, dry_run={dry_run}"
        )

    def orchestrate_migration(self) -> Dict[str, Any]:
        """
        Run the complete migration.

        Returns:
            Migration report dictionary
        """
        self.logger.info("Starting migration orchestration")
        start_time = time.time()

        try:
            log_section("Phase 1: Discovery")
            records = self.loader.discover(self.namespaces)
            mapping = build_mapping(records)

            downloader = AssetDownloader(
                self.client.download,
                max_workers=self.settings.download_workers,
                logger=self.logger
            )
            try:
                log_section("Phase 2: Conversion")
                schedule = self._skip_download if self.dry_run else downloader.submit
                statuses = self._execute_conversion(records, mapping, schedule)

                log_section("Phase 3: Asset Downloads")
                download_stats = downloader.wait()
            finally:
                downloader.shutdown()
        finally:
            if self._owns_client:
                self.client.close()

        duration = time.time() - start_time
        return self.report_generator.generate_report(
            statuses,
            duration,
            export_stats=self.exporter.get_stats(),
            download_stats=download_stats,
            dry_run=self.dry_run
        )

    def _execute_conversion(
        self,
        records: List[DocumentRecord],
        mapping: DocumentMapping,
        schedule_download
    ) -> List[MigrationStatus]:
        """
        Convert every document on a worker pool and export results as they finish.

        Returns:
            One status per document, in discovery order
        """
        if not records:
            self.logger.warning("No documents to convert")
            return []

        converter = DocumentConverter(
            self.settings,
            mapping,
            self.client.resolve_redirect,
            schedule_download,
            logger=self.logger
        )
        statuses: Dict[str, MigrationStatus] = {}

        with ProgressTracker(total_items=len(records), item_type='documents') as tracker:
            with ThreadPoolExecutor(max_workers=self.settings.max_workers, thread_name_prefix='convert') as executor:
                futures: Dict[Future, DocumentRecord] = {
                    executor.submit(self._convert_document, converter, doc): doc
                    for doc in records
                }
                completed = as_completed(futures)
                if self.show_progress:
                    completed = tqdm(completed, total=len(futures), desc='Converting', unit='doc')

                for future in completed:
                    doc = futures[future]
                    status = future.result()
                    if status.status == 'converted':
                        self._export_document(doc, status)
                    statuses[doc.key] = status
                    tracker.increment(success=status.status != 'failed')

        return [statuses[doc.key] for doc in records]

    def _convert_document(self, converter: DocumentConverter, doc: DocumentRecord) -> MigrationStatus:
        status = MigrationStatus(document_key=doc.key, title=doc.title, status='pending')
        try:
            body = self.loader.load_body(doc)
            converter.convert(doc, body, status)
            status.status = 'converted'
        except Exception as e:
            self.logger.error(f"Failed to convert document '{doc.title}' ({doc.key}): {e}")
            status.status = 'failed'
            status.error_message = str(e)
        return status

    def _export_document(self, doc: DocumentRecord, status: MigrationStatus) -> None:
        try:
            self.exporter.export(doc)
            status.status = 'exported'
        except OSError as e:
            self.logger.error(f"Failed to write document '{doc.title}' ({doc.key}): {e}")
            status.status = 'failed'
            status.error_message = str(e)

    def _skip_download(self, url: str, destination: Path) -> None:
        self.logger.info(f"[dry-run] Would download {url} -> {destination}")


__all__ = ['MigrationOrchestrator']
