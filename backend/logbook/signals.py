# backend/logbook/signals.py
import logging

from django.dispatch import Signal, receiver

logger = logging.getLogger(__name__)

# Dikirim setelah logbook dinilai. kwargs: logbook, assessment, message
logbook_assessed = Signal()


@receiver(logbook_assessed)
def log_logbook_assessed(sender, logbook, assessment, message, **kwargs):
    logger.info(
        f"Logbook {logbook.pk} ({logbook.student.email}) dinilai: "
        f"{assessment.result}, status {logbook.status}. {message}"
    )
