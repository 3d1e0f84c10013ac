"""Dual-channel notification fan-out to a list of recipients.

Recipients are served strictly one after another behind a Pacer; the two
channels for a single recipient run concurrently. Channel outcomes are
tallied into ChannelCounts and never raise.
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable

from cohort_schedule.batch import Pacer
from cohort_schedule.dispatch import NotificationDispatcher
from cohort_schedule.logging import get_logger
from cohort_schedule.models import ChannelCounts, Recipient
from cohort_schedule.templates import Message
from cohort_schedule.utils import is_email_address, normalize_phone

logger = get_logger(__name__)

Composer = Callable[[Recipient], Message]


async def _attempt(channel: str, to: str, send: Awaitable[bool]) -> bool:
    try:
        return bool(await send)
    except Exception as e:
        # Unexpected errors count as a failed send
        logger.error("notification_raised", channel=channel, to=to, error=str(e), exc_info=True)
        return False


async def notify_recipient(
    dispatcher: NotificationDispatcher,
    recipient: Recipient,
    message: Message,
    counts: ChannelCounts,
    country_code: str,
) -> None:
    """Attempt email and WhatsApp for one recipient and tally the outcomes.

    A missing or invalid email skips channel A; a phone that cannot be
    normalized skips channel B and counts as whatsapp_skipped.
    """
    sends: dict[str, Awaitable[bool]] = {}

    if is_email_address(recipient.email):
        sends["email"] = _attempt(
            "email",
            recipient.email,
            dispatcher.send_email(recipient.email, message.subject, message.html),
        )

    phone = normalize_phone(recipient.phone, country_code)
    if phone:
        sends["whatsapp"] = _attempt(
            "whatsapp",
            phone,
            dispatcher.send_whatsapp(phone, message.template_name, message.params),
        )
    elif recipient.phone:
        counts.whatsapp_skipped += 1
        logger.info("phone_unusable", kind=recipient.kind.value, name=recipient.name)

    outcomes = dict(zip(sends, await asyncio.gather(*sends.values())))
    counts.record(email=outcomes.get("email"), whatsapp=outcomes.get("whatsapp"))


async def fan_out(
    dispatcher: NotificationDispatcher,
    recipients: Iterable[Recipient],
    compose: Composer,
    pacer: Pacer,
    country_code: str,
    audience: str,
) -> ChannelCounts:
    """Notify every recipient in order, pacing between them.

    Returns:
        ChannelCounts for this audience.
    """
    counts = ChannelCounts()
    recipients = list(recipients)
    if not recipients:
        return counts

    logger.info("fan_out_started", audience=audience, recipients=len(recipients))
    for recipient in recipients:
        await pacer.wait()
        await notify_recipient(dispatcher, recipient, compose(recipient), counts, country_code)

    logger.info("fan_out_finished", audience=audience, **counts.model_dump())
    return counts
