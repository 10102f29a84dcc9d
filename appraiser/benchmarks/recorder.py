"""Off-path benchmark recording."""

import asyncio
import logging
from typing import Callable, List, Optional

from appraiser.analysis.models import Vote
from appraiser.benchmarks.models import BenchmarkContext, BenchmarkRecord
from appraiser.benchmarks.scorer import get_accuracy_summary, score_votes
from appraiser.utils.background import BackgroundWriter

logger = logging.getLogger(__name__)


class BenchmarkRecorder:
    """Scores votes and queues them for storage without blocking the caller."""

    def __init__(
        self,
        writer: BackgroundWriter,
        store: Optional[Callable[[List[BenchmarkRecord]], int]] = None,
    ):
        """Initialize recorder.

        Args:
            writer: Background queue the inserts go through
            store: Writes a batch of records. None scores and logs only.
        """
        self.writer = writer
        self.store = store

    def record(self, votes: List[Vote], context: BenchmarkContext) -> List[BenchmarkRecord]:
        """Score ``votes`` and queue the batch for storage.

        Never raises; a failure here only costs the benchmark data.

        Returns:
            The scored batch, empty when there were no votes or scoring failed
        """
        try:
            records = score_votes(votes, context)
        except Exception as e:
            logger.warning(f"Benchmark scoring failed for {context.analysis_id}: {e}")
            return []

        if not records:
            logger.debug(f"No votes to benchmark for {context.analysis_id}")
            return records

        logger.info(f"Benchmark {context.analysis_id}:\n{get_accuracy_summary(records)}")

        if self.store is not None:
            store = self.store
            self.writer.submit(
                f"benchmarks {context.analysis_id}",
                lambda: asyncio.to_thread(store, records),
            )
        return records
