"""Package for downloading pageview dumps and merging them into the store.

The `PageviewsPipeline` class wires the two stages together, the
`BoundedScheduler` class limits how many operations of a stage run at
once, and the `download_file` and `ingest_file` functions implement the
operations of each stage.

Work Items
----------

The source URL template and the output file name template are expanded
using the same rules (see `pageviews.pattern`), so the i-th URL and the
i-th file name refer to the same hour. Each pair is a `WorkItem`:

    https://dumps.wikimedia.org/other/pageviews/2016/2016-07/pageviews-20160721-110000.gz
    $destination/2016-07-21-11.csv

Scheduling
----------

Each stage is a list of futures, one per work item and in the same order
as the work items, regardless of the order in which they complete. The
ingest operation of an item waits for the download future of the same
item and fails with the download error if the download failed. Failures
never propagate to other items: the pipeline as a whole is a list of
independent outcomes (see `PipelineResult`), not an atomic unit.

The two stages have independent concurrency limits. Downloads are bound
by the network, ingestions by the store, which receives one bulk request
per batch of lines of every concurrently ingested file.

On-Disk Format
--------------

Downloaded files are decompressed and stored as they are, one file per
hour. The name of each file must contain its hour as YYYY-MM-DD-HH since
that is where the ingest stage reads it from.
"""

from .download import download_file, get_decompressor_factory
from .ingest import ingest_file
from .pipeline import PageviewsPipeline, PipelineResult, WorkItem, list_data_files
from .scheduler import BoundedScheduler

__all__ = [
    "BoundedScheduler",
    "PageviewsPipeline",
    "PipelineResult",
    "WorkItem",
    "download_file",
    "get_decompressor_factory",
    "ingest_file",
    "list_data_files",
]
