import itertools
import logging
import threading
from collections import deque
import requests
from flask import current_app
from truthnode.errors import SinkFailure
from truthnode.utils.clock import utcnow

logger = logging.getLogger(__name__)

ARTICLE_VERIFIED = 'article_verified'
ARTICLE_DISPROVEN = 'article_disproven'
ARTICLE_STATUS_OVERRIDDEN = 'article_status_overridden'


class NotificationPublisher:
    """
    Fire-and-forget outbound events.
    Events go to an in-process ring buffer (polled over HTTP), to any
    registered subscribers, and to NOTIFY_WEBHOOK_URL when configured.
    Delivery failures are logged and never reach the caller.
    """

    def __init__(self, buffer_size=100):
        self._events = deque(maxlen=buffer_size)
        self._subscribers = []
        self._seq = itertools.count(1)
        self._lock = threading.Lock()

    def subscribe(self, callback):
        with self._lock:
            self._subscribers.append(callback)
        return callback

    def unsubscribe(self, callback):
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def publish(self, event_type, payload):
        with self._lock:
            event = {
                'seq': next(self._seq),
                'type': event_type,
                'data': payload,
                'timestamp': utcnow().isoformat(),
            }
            self._events.append(event)
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(event)
            except Exception as e:
                self._report(SinkFailure('subscriber', str(e)))

        self._post_webhook(event)
        return event

    def recent(self, since=0, limit=None):
        with self._lock:
            events = [e for e in self._events if e['seq'] > since]
        if limit:
            events = events[-limit:]
        return events

    def clear(self):
        with self._lock:
            self._events.clear()

    def _post_webhook(self, event):
        try:
            url = current_app.config.get('NOTIFY_WEBHOOK_URL')
            timeout = current_app.config.get('NOTIFY_WEBHOOK_TIMEOUT', 5)
        except RuntimeError:
            # Outside an app context (e.g. a bare script): nothing to post to
            return
        if not url:
            return
        try:
            resp = requests.post(url, json=event, timeout=timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            self._report(SinkFailure('notify_webhook', str(e)))

    def _report(self, failure):
        logger.warning(f"Notification delivery failed: {failure}")


def init_app(app):
    app.extensions['notifications'] = NotificationPublisher(
        buffer_size=app.config.get('NOTIFICATION_BUFFER_SIZE', 100),
    )


def get_publisher():
    return current_app.extensions['notifications']
