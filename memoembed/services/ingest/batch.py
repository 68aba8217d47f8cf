"""Sequential batch ingest of a fixed note catalog.

Feeds each catalog entry through the full IngestPipeline and reports
progress, so a freshly installed store has something to search.
"""

import asyncio
import logging
import random
from typing import AsyncIterator, Optional, Sequence

from memoembed.lib.config import IngestConfig, get_ingest_config
from memoembed.lib.exceptions import DimensionMismatchError
from memoembed.services.ingest.pipeline import IngestPipeline

logger = logging.getLogger(__name__)


DEMO_ENTRIES: tuple[str, ...] = (
    # Work/Meetings
    "Need to schedule the quarterly team meeting for next week and prepare the agenda",
    "Client presentation is due Friday, remember to include the latest sales figures and projections",
    "Budget review meeting went well, approved the marketing spend for Q2 campaigns",
    "Performance evaluation notes: team exceeded targets by 15 percent this quarter",
    # Food/Cooking
    "Buy ingredients for homemade pizza tonight - need mozzarella, tomatoes, and fresh basil",
    "Try that new pasta recipe from the cooking show, looks delicious and easy to make",
    "Great restaurant recommendation downtown, the seafood place on Main Street has amazing reviews",
    "Meal prep for the week: grilled chicken, quinoa, and roasted vegetables for healthy lunches",
    # Health/Fitness
    "Start morning jog routine tomorrow at 6 AM, aim for 30 minutes around the park",
    "Doctor appointment reminder: annual checkup scheduled for next Thursday at 2 PM",
    "Downloaded new meditation app, going to try the 10-minute morning mindfulness session",
    # Travel/Transportation
    "Book train tickets for the weekend getaway to the mountains, check the schedule online",
    "Flight to the conference is confirmed, remember to print boarding pass and pack laptop charger",
    "Car maintenance is due next month, need to schedule oil change and tire rotation",
    # Personal/Family
    "Call mom this weekend to catch up and discuss summer vacation plans with the family",
    "Birthday party planning for Sarah next month, need to book venue and send invitations",
    "Family vacation ideas: beach resort or mountain cabin, need to decide by end of week",
    # Learning/Hobbies
    "Learn guitar basics this month, found a good online tutorial series for beginners",
    "Photography workshop signup deadline is tomorrow, looks like a great opportunity to improve skills",
    "Read the book recommendations from the podcast, especially the one about productivity and habits",
)


class BatchIngestOrchestrator:
    """
    Ingests a catalog of notes one at a time.

    Progress is reported as the count of completed entries: 0 first, then
    ``index + 1`` after each successful submit. A failing entry is logged
    and skipped, so reported values stay increasing but may skip numbers.
    """

    def __init__(
        self,
        pipeline: IngestPipeline,
        texts: Optional[Sequence[str]] = None,
        config: Optional[IngestConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            pipeline: Ingest pipeline each entry goes through
            texts: Catalog to ingest (None = DEMO_ENTRIES)
            config: Ingest configuration (None = from environment)
            rng: Random source for synthetic durations
        """
        self.pipeline = pipeline
        self.texts = tuple(DEMO_ENTRIES if texts is None else texts)
        self.config = config or get_ingest_config()
        self._rng = rng or random.Random()

    @property
    def total(self) -> int:
        """Number of catalog entries."""
        return len(self.texts)

    def _random_duration(self) -> int:
        return self._rng.randrange(
            self.config.demo_min_duration_ms, self.config.demo_max_duration_ms
        )

    async def run(self) -> AsyncIterator[int]:
        """
        Ingest every catalog entry sequentially.

        Yields:
            Completed-entry count, starting with 0
        """
        total = self.total
        logger.info(f"Starting batch ingest of {total} entries")
        yield 0

        for index, text in enumerate(self.texts):
            duration_ms = self._random_duration()
            logger.debug(f"[{index + 1}/{total}] Ingesting \"{text[:50]}...\" ({duration_ms}ms)")

            try:
                outcome = await self.pipeline.submit(text, duration_ms)
            except asyncio.CancelledError:
                raise
            except DimensionMismatchError as e:
                # Text is stored; only its fingerprint is missing
                logger.error(f"[{index + 1}/{total}] Saved as note {e.record_id} without fingerprint: {e}")
            except Exception as e:
                logger.error(f"Error ingesting batch entry {index + 1}: {e}")
                continue
            else:
                logger.debug(f"[{index + 1}/{total}] Saved as note {outcome.record_id} ({outcome.state.value})")

            yield index + 1

            await asyncio.sleep(self.config.demo_item_delay_seconds)

        logger.info(f"Batch ingest completed: {total} entries processed")
