import kopf
from logging import Logger
from addon_operator.common.models.kinds import ADDON
from addon_operator.types.settings import RESYNC_PERIOD_SECONDS


@kopf.on.event(group=ADDON.group, version=ADDON.version, plural=ADDON.plural)
async def on_addon_event(name, event, memo: kopf.Memo, logger: Logger, **kwargs):
    """Request reconciliation of the Addon behind any event on it."""
    logger.debug(f"Addon event {event.get('type') or 'LISTED'}, requesting reconciliation.")
    memo.queue.add(name)


async def resync_addon(name, memo: kopf.Memo, logger: Logger, **kwargs):
    """Periodically requeue an Addon to correct drift that produced no event."""
    logger.debug("Resyncing Addon.")
    memo.queue.add(name)


if RESYNC_PERIOD_SECONDS > 0:
    kopf.timer(
        ADDON.group,
        ADDON.version,
        ADDON.plural,
        interval=RESYNC_PERIOD_SECONDS,
        initial_delay=RESYNC_PERIOD_SECONDS,
    )(resync_addon)
