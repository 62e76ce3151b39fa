import logging
from django.dispatch import Signal

logger = logging.getLogger(__name__)

USER_BEFORE_DESTROY = "user.before_destroy"


class EventBus:
    """
    In-process event bus built on Django's Signal dispatcher.

    Apps publish lifecycle events by name; other apps subscribe handlers from
    their ``AppConfig.ready()`` so cross-app reactions are wired explicitly
    instead of living inside model definitions.
    """
    def __init__(self):
        self._signals = {}

    def register_event(self, event_name: str):
        if event_name not in self._signals:
            self._signals[event_name] = Signal()
            logger.debug(f"Event '{event_name}' registered.")

    def publish(self, event_name: str, **kwargs):
        """
        Publishes an event to all subscribed handlers and returns their results.

        Handler exceptions propagate to the publisher, so a failing subscriber
        aborts the operation that raised the event.
        """
        if event_name not in self._signals:
            self.register_event(event_name)
            logger.warning(f"Event '{event_name}' was published without being pre-registered.")

        signal = self._signals[event_name]
        logger.info(f"Publishing event '{event_name}' with args: {kwargs}")
        results = signal.send(sender=self.__class__, **kwargs)
        if not results:
            logger.debug(f"Event '{event_name}' was published, but no handlers received it.")
        return results

    def subscribe(self, event_name: str, handler, dispatch_uid=None):
        self.register_event(event_name)
        self._signals[event_name].connect(handler, weak=False, dispatch_uid=dispatch_uid)
        logger.info(f"Handler {handler.__name__} subscribed to event '{event_name}'.")

    def unsubscribe(self, event_name: str, handler=None, dispatch_uid=None):
        signal = self._signals.get(event_name)
        if signal is None:
            return False
        return signal.disconnect(handler, dispatch_uid=dispatch_uid)


event_bus = EventBus()
event_bus.register_event(USER_BEFORE_DESTROY)
