"""
Event notification module.

Forwards committed attendance events (CHECK_IN/CHECK_OUT) to a webhook.
Delivery is best-effort, runs off the request thread and never affects
the attendance outcome.
"""

import threading
from typing import Optional

import requests

from .config import Config
from .logging_config import get_logger
from .models import AttendanceEvent, Identity
from .utils.timing import retry_with_backoff

logger = get_logger(__name__)

WEBHOOK_TIMEOUT_SECONDS = 5


class WebhookServerError(requests.exceptions.HTTPError):
    """5xx answer from the webhook; worth another attempt."""


class EventNotifier:
    """
    Posts attendance events to EVENT_WEBHOOK_URL.
    
    Does nothing when no webhook is configured. Network errors and 5xx
    answers are retried with backoff; 4xx answers are not.
    """
    
    def __init__(
        self,
        config: Config,
        session: Optional[requests.Session] = None,
        max_attempts: int = 3,
        initial_delay: float = 0.5,
        timeout: float = WEBHOOK_TIMEOUT_SECONDS
    ):
        self.url = config.event_webhook_url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
    
    @property
    def enabled(self) -> bool:
        return bool(self.url)
    
    def _post(self, payload: dict) -> requests.Response:
        response = self.session.post(self.url, json=payload, timeout=self.timeout)
        if response.status_code >= 500:
            raise WebhookServerError(f'{response.status_code} from {self.url}', response=response)
        return response
    
    def send(self, identity: Identity, event: AttendanceEvent) -> bool:
        """
        Send an attendance event.
        
        Args:
            identity: Identity the event belongs to
            event: Committed event
        
        Returns:
            True if the event was delivered
        """
        if not self.enabled:
            return False
        
        payload = {
            'identityId': identity.id,
            'name': identity.name,
            'email': identity.email,
            'type': event.kind.value,
            'timestamp': event.timestamp.isoformat(),
            'similarity': event.similarity,
            'latencyMs': event.latency_ms,
        }
        
        logger.info(f'📤 Sending event {event.kind.value} for identity {identity.id}')
        
        try:
            response = retry_with_backoff(
                lambda: self._post(payload),
                max_attempts=self.max_attempts,
                initial_delay=self.initial_delay,
                retry_on=(
                    requests.exceptions.ConnectionError,
                    requests.exceptions.Timeout,
                    WebhookServerError,
                ),
            )
        except requests.exceptions.Timeout:
            logger.error(f'❌ Timeout sending event to {self.url}')
            return False
        except requests.exceptions.ConnectionError:
            logger.error(f'❌ Connection error sending event to {self.url}')
            return False
        except requests.exceptions.RequestException as e:
            logger.error(f'❌ Failed to send event: {e}')
            return False
        
        if not response.ok:
            logger.error(f'❌ Failed to send event: {response.status_code} {response.text}')
            return False
        
        logger.info('✅ Event sent successfully')
        return True
    
    def send_async(self, identity: Identity, event: AttendanceEvent) -> Optional[threading.Thread]:
        """
        Send an attendance event from a background thread.
        
        Returns:
            The started thread, or None when no webhook is configured
        """
        if not self.enabled:
            return None
        
        thread = threading.Thread(
            target=self.send,
            args=(identity, event),
            daemon=True,
            name=f'EventNotifier-{identity.id}'
        )
        thread.start()
        return thread
