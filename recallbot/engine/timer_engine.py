"""Timer engine - one-shot reminder jobs per definition and delay."""

import logging

from telegram.ext import ContextTypes, JobQueue

from recallbot.db.models import Definition, ReminderEvent
from recallbot.engine.notifier import Notifier
from recallbot.engine.schedule import DelaySchedule
from recallbot.engine.status_store import StatusStore
from recallbot.utils.constants import STATUS_PENDING
from recallbot.utils.errors import NotFound, PersistenceFailure

logger = logging.getLogger(__name__)

JOB_PREFIX = "reminder"


def job_name(definition_id: str, delay_label: str) -> str:
    return f"{JOB_PREFIX}:{definition_id}:{delay_label}"


class TimerEngine:
    """Arms one JobQueue job per (definition, delay).

    Jobs live in the application's JobQueue: they are lost on restart and
    are not re-armed.
    """

    def __init__(
        self,
        schedule: DelaySchedule,
        status_store: StatusStore,
        notifier: Notifier,
        job_queue: JobQueue,
    ):
        self.delays = schedule
        self.status_store = status_store
        self.notifier = notifier
        self.job_queue = job_queue

    def schedule(self, definition: Definition) -> None:
        """Arm a job for every configured delay. Returns immediately."""
        for entry in self.delays:
            name = job_name(definition.stored_id, entry.label)

            # Re-scheduling replaces the previous job for the same key
            for job in self.job_queue.get_jobs_by_name(name):
                job.schedule_removal()

            self.job_queue.run_once(
                self._run,
                when=entry.seconds,
                name=name,
                data=(definition.stored_id, entry.label),
            )

        logger.info(
            f"Scheduled {len(self.delays)} reminders for definition {definition.id}"
        )

    def cancel(self, definition_id: str) -> int:
        """Remove all still-armed jobs of a definition.

        Returns the number of jobs removed.
        """
        cancelled = 0
        for label in self.delays.labels:
            for job in self.job_queue.get_jobs_by_name(job_name(definition_id, label)):
                job.schedule_removal()
                cancelled += 1
        if cancelled:
            logger.info(f"Cancelled {cancelled} reminders for definition {definition_id}")
        return cancelled

    def pending_timers(self, definition_id: str | None = None) -> int:
        """Count armed jobs, optionally for one definition."""
        prefix = f"{JOB_PREFIX}:{definition_id}:" if definition_id else f"{JOB_PREFIX}:"
        return sum(1 for job in self.job_queue.jobs() if (job.name or "").startswith(prefix))

    async def fire(self, definition_id: str, delay_label: str) -> bool:
        """Deliver the reminder for one delay if it is still pending.

        Returns True if the event was handed to the notifier.
        """
        try:
            definition = await self.status_store.get_definition(definition_id)
            if definition is None:
                logger.info(f"Skipping reminder {definition_id}/{delay_label}: definition deleted")
                return False

            status = await self.status_store.get_status(definition_id, delay_label)
        except NotFound:
            logger.info(f"Skipping reminder {definition_id}/{delay_label}: no status")
            return False
        except PersistenceFailure as e:
            logger.error(f"Reminder {definition_id}/{delay_label} lost: {e}")
            return False

        if status.state != STATUS_PENDING:
            logger.info(
                f"Skipping reminder {definition_id}/{delay_label}: already {status.state}"
            )
            return False

        event = ReminderEvent(
            definition_id=definition_id,
            word=definition.word,
            definition=definition.definition,
            delay_label=delay_label,
        )
        await self.notifier.broadcast(definition.user_id, event)
        return True

    async def _run(self, context: ContextTypes.DEFAULT_TYPE) -> None:
        """JobQueue callback for one reminder."""
        definition_id, delay_label = context.job.data  # type: ignore
        try:
            await self.fire(definition_id, delay_label)
        except Exception:
            logger.exception(f"Error firing reminder {definition_id}/{delay_label}")
