import os
import threading
from typing import Callable, Iterable, List, Optional, Set

from google.api_core.exceptions import NotFound
from google.cloud import pubsub_v1

from emulator_demos.config import CFG
from emulator_demos.exceptions import PubSubOperationError
from emulator_demos.models.pubsub import ReceivedMessage
from emulator_demos.utils.logger import logger
from emulator_demos.utils.utils import rfc3339_now


MessageHandler = Callable[[ReceivedMessage], None]


#######################
### Setup Functions ###
#######################


def _point_at_emulator() -> None:
    # The SDK switches to an insecure channel with anonymous credentials when this is set
    os.environ["PUBSUB_EMULATOR_HOST"] = CFG.pubsub_emulator_host


def get_publisher_client() -> pubsub_v1.PublisherClient:
    _point_at_emulator()
    try:
        return pubsub_v1.PublisherClient()
    except Exception as e:
        logger.error(f"Error building publisher client for {CFG.pubsub_emulator_host}: {e}")
        raise


def get_subscriber_client() -> pubsub_v1.SubscriberClient:
    _point_at_emulator()
    try:
        return pubsub_v1.SubscriberClient()
    except Exception as e:
        logger.error(f"Error building subscriber client for {CFG.pubsub_emulator_host}: {e}")
        raise


class PubSubService:
    """
    Manages the topic and subscription used by the messaging walkthrough.
    """

    def __init__(
        self,
        publisher: pubsub_v1.PublisherClient,
        subscriber: pubsub_v1.SubscriberClient,
        project_id: str = CFG.project_id,
        topic_name: str = CFG.topic_name,
        subscription_id: str = CFG.subscription_id,
    ):
        self.publisher = publisher
        self.subscriber = subscriber
        self.project_id = project_id
        self.topic_name = topic_name
        self.subscription_id = subscription_id

    @property
    def topic_path(self) -> str:
        return self.publisher.topic_path(self.project_id, self.topic_name)

    @property
    def subscription_path(self) -> str:
        return self.subscriber.subscription_path(self.project_id, self.subscription_id)

    def ensure_topic(self) -> bool:
        """
        Creates the topic unless it already exists. Returns True if it was created.
        """
        try:
            self.publisher.get_topic(request={"topic": self.topic_path})
            print(f"Topic '{self.topic_name}' already exists")
            return False
        except NotFound:
            pass
        except Exception as e:
            logger.error(f"Error looking up topic {self.topic_path}: {e}")
            raise PubSubOperationError("check if topic exists", self.topic_path, e) from e

        try:
            self.publisher.create_topic(request={"name": self.topic_path})
        except Exception as e:
            logger.error(f"Error creating topic {self.topic_path}: {e}")
            raise PubSubOperationError("create topic", self.topic_path, e) from e

        print(f"Created topic: {self.topic_name}")
        return True

    def ensure_subscription(self) -> bool:
        """
        Creates the subscription on the topic unless it already exists.
        Returns True if it was created.
        """
        try:
            self.subscriber.get_subscription(
                request={"subscription": self.subscription_path}
            )
            print(f"Subscription '{self.subscription_id}' already exists")
            return False
        except NotFound:
            pass
        except Exception as e:
            logger.error(f"Error looking up subscription {self.subscription_path}: {e}")
            raise PubSubOperationError(
                "check if subscription exists", self.subscription_path, e
            ) from e

        try:
            self.subscriber.create_subscription(
                request={"name": self.subscription_path, "topic": self.topic_path}
            )
        except Exception as e:
            logger.error(f"Error creating subscription {self.subscription_path}: {e}")
            raise PubSubOperationError(
                "create subscription", self.subscription_path, e
            ) from e

        print(f"Created subscription: {self.subscription_id}")
        return True

    def setup_topic_and_subscription(self) -> None:
        self.ensure_topic()
        self.ensure_subscription()

    def publish_message(self, message: str) -> str:
        """
        Publishes a message with a timestamp attribute and waits for the
        emulator to confirm it. Returns the server-assigned message ID.
        """
        try:
            future = self.publisher.publish(
                self.topic_path, message.encode("utf-8"), timestamp=rfc3339_now()
            )
            message_id = future.result(timeout=CFG.publish_timeout)
        except Exception as e:
            logger.error(f"Error publishing to {self.topic_path}: {e}")
            raise PubSubOperationError("publish message", self.topic_path, e) from e

        logger.debug(f"Published message {message_id} to {self.topic_path}")
        return message_id

    def receiver(
        self, handler: MessageHandler, expected: Optional[Iterable[str]] = None
    ) -> "MessageReceiver":
        return MessageReceiver(self.subscriber, self.subscription_path, handler, expected)


class MessageReceiver:
    """
    Runs a streaming pull on a subscription, handing every message to
    `handler` and acknowledging it straight after. Signals completion once
    every payload in `expected` has arrived or the stream shuts down.
    Redeliveries and leftovers from earlier runs do not count towards
    completion.
    """

    def __init__(
        self,
        subscriber: pubsub_v1.SubscriberClient,
        subscription_path: str,
        handler: MessageHandler,
        expected: Optional[Iterable[str]] = None,
    ):
        self.subscriber = subscriber
        self.subscription_path = subscription_path
        self.handler = handler
        self.error: Optional[BaseException] = None

        self._pending: Optional[Set[bytes]] = None
        if expected is not None:
            self._pending = {text.encode("utf-8") for text in expected}

        self._received: List[ReceivedMessage] = []
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._future = None

        if self._pending is not None and not self._pending:
            self._done.set()

    @property
    def received(self) -> List[ReceivedMessage]:
        with self._lock:
            return list(self._received)

    @property
    def pending(self) -> Set[str]:
        """Expected payloads that have not been delivered yet."""
        with self._lock:
            return {data.decode("utf-8") for data in self._pending or ()}

    def start(self) -> "MessageReceiver":
        print("Starting message subscriber...")
        self._future = self.subscriber.subscribe(
            self.subscription_path, callback=self._on_message
        )
        self._future.add_done_callback(self._on_stream_closed)
        return self

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Blocks until the expected messages arrived or the stream closed.
        Returns False on timeout.
        """
        return self._done.wait(timeout)

    def stop(self) -> None:
        if self._future is None:
            return

        future, self._future = self._future, None
        future.cancel()
        if self.error is not None:
            return

        try:
            # Blocks until the streaming pull has shut down
            future.result()
        except Exception as e:
            self._record_failure(e)

    def _on_message(self, message) -> None:
        received = ReceivedMessage.from_pubsub(message)
        self.handler(received)
        message.ack()

        with self._lock:
            self._received.append(received)
            if self._pending is not None:
                self._pending.discard(received.data)
                if not self._pending:
                    self._done.set()

    def _on_stream_closed(self, future) -> None:
        if not future.cancelled():
            error = future.exception()
            if error is not None:
                self._record_failure(error)
        self._done.set()

    def _record_failure(self, error: BaseException) -> None:
        with self._lock:
            if self.error is not None:
                return
            self.error = error
        logger.error(f"Failed to subscribe: {error}")
