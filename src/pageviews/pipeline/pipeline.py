"""Module implementing the PageviewsPipeline type."""

from __future__ import annotations

import logging
from concurrent.futures import Future
from dataclasses import dataclass
from functools import partial
from pathlib import Path

import requests
from rich.progress import Progress

from ..config import Settings
from ..pattern import expand
from ..store import DocumentStore
from .download import download_file, get_decompressor_factory
from .ingest import ingest_file
from .scheduler import BoundedScheduler

log = logging.getLogger("pipeline/pipeline")


@dataclass(frozen=True, kw_only=True)
class WorkItem:
    """A remote file and the local file it is downloaded into."""

    source: str
    destination: Path


@dataclass(frozen=True, kw_only=True)
class PipelineResult:
    """The settled outcome of a single work item."""

    index: int
    source: str
    value: Path | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class PageviewsPipeline:
    """
    Component downloading the pageview dumps and merging them into the store.

    The pipeline has two stages, each running under its own BoundedScheduler:

    1. the download stage fetches every work item, at most
       `settings.download.concurrent` at a time;

    2. the ingest stage merges every downloaded file into the store, at most
       `settings.store.concurrent` at a time.

    Each stage returns one future per work item, in work item order. The
    ingest of an item only starts once its download succeeded, and a failure
    of either stage only affects the item it happened to.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        store: DocumentStore | None = None,
        session: requests.Session | None = None,
        progress: Progress | None = None,
    ) -> None:
        """
        Initialize the pipeline.

        Parameters:
            settings: the resolved settings.
            store: the store to merge into, required by the ingest stage.
            session: the HTTP session used by the download stage.
            progress: optional rich Progress displaying the downloads.
        """
        self.settings = settings
        self.store = store
        self.session = session if session is not None else requests.Session()
        self.progress = progress

    def work_items(self) -> list[WorkItem]:
        """
        Expand the source and output templates into work items.

        Raises:
            InvalidRuleError: if a rule does not apply to either template.
        """
        download = self.settings.download
        rules = download.rules()
        sources = expand(download.source, rules)
        outputs = expand(download.output, rules)
        destination = Path(download.destination).resolve()
        return [
            WorkItem(source=source, destination=destination / output)
            for source, output in zip(sources, outputs, strict=True)
        ]

    def download(self, items: list[WorkItem] | None = None) -> list[Future[Path]]:
        """Schedule the download of every work item."""
        items = self.work_items() if items is None else items
        download = self.settings.download
        factory = get_decompressor_factory(download.compression)
        scheduler = BoundedScheduler(download.concurrent, name="download")
        return scheduler.run(
            [
                partial(
                    download_file,
                    item.source,
                    item.destination,
                    session=self.session,
                    decompressor_factory=factory,
                    overwrite=download.overwrite,
                    progress=self.progress,
                )
                for item in items
            ]
        )

    def present_paths(self, items: list[WorkItem] | None = None) -> list[Future[Path]]:
        """Return an already-resolved future for every downloaded work item."""
        items = self.work_items() if items is None else items
        futures: list[Future[Path]] = []
        for item in items:
            if not item.destination.exists():
                log.debug("skipping %s: not downloaded", item.destination)
                continue
            futures.append(_resolved(item.destination))
        return futures

    def ingest(self, available: list[Future[Path]]) -> list[Future[Path]]:
        """
        Schedule the ingestion of every available file.

        The ingestion of a file is only scheduled once its future in
        available has succeeded, so files still downloading do not hold
        ingest slots. When that future failed, the returned future fails
        with the same exception.
        """
        if self.store is None:
            raise ValueError("the ingest stage requires a store")
        scheduler = BoundedScheduler(self.settings.store.concurrent, name="ingest")
        return scheduler.run_after(
            available,
            partial(ingest_file, store=self.store, batch_size=self.settings.store.batch),
        )

    def run(self) -> list[PipelineResult]:
        """
        Run the enabled stages and wait for every work item to settle.

        When the download stage is disabled, only the work items whose
        destination already exists are considered.

        Raises:
            InvalidRuleError: if the templates cannot be expanded, before
                any work is scheduled.
        """
        tasks = self.settings.tasks
        items = self.work_items()
        if tasks.download:
            futures = self.download(items)
        else:
            items = [item for item in items if item.destination.exists()]
            futures = self.present_paths(items)

        for item, future in zip(items, futures, strict=True):
            future.add_done_callback(_log_available(item))

        if tasks.ingest:
            futures = self.ingest(futures)

        return collect(items, futures)

    def ingest_directory(self, directory: str | Path) -> list[PipelineResult]:
        """Merge every data file in directory into the store and wait for them."""
        paths = list_data_files(directory)
        items = [WorkItem(source=str(path), destination=path) for path in paths]
        return collect(items, self.ingest([_resolved(path) for path in paths]))


def collect(items: list[WorkItem], futures: list[Future[Path]]) -> list[PipelineResult]:
    """Wait for all the futures and return their outcomes in order."""
    results: list[PipelineResult] = []
    for index, (item, future) in enumerate(zip(items, futures, strict=True)):
        try:
            results.append(PipelineResult(index=index, source=item.source, value=future.result()))
        except BaseException as exc:
            results.append(PipelineResult(index=index, source=item.source, error=exc))
    return results


def _log_available(item: WorkItem):
    def callback(future: Future[Path]) -> None:
        if future.cancelled():
            return
        if future.exception() is None:
            log.info("%s is available", item.destination)
        else:
            log.warning("%s is not available: %s", item.source, future.exception())

    return callback


def list_data_files(directory: str | Path) -> list[Path]:
    """Return the regular, non-hidden files in directory, sorted by name."""
    return sorted(
        path
        for path in Path(directory).resolve().iterdir()
        if path.is_file() and not path.name.startswith(".")
    )


def _resolved(value: Path) -> Future[Path]:
    future: Future[Path] = Future()
    future.set_result(value)
    return future
