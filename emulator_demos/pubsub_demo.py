"""
Walks through basic Pub/Sub calls against the local emulator: create a topic
and subscription, receive in the background while publishing a handful of
messages, then shut the receiver down once everything has arrived.
"""

import sys
import time
from typing import List

from emulator_demos.config import CFG
from emulator_demos.exceptions import EmulatorDemoError
from emulator_demos.models.pubsub import ReceivedMessage
from emulator_demos.services.pubsub import (
    PubSubService,
    get_publisher_client,
    get_subscriber_client,
)
from emulator_demos.utils.logger import logger


def print_message(message: ReceivedMessage) -> None:
    print(f"Received message: {message.text}")

    if message.attributes:
        print(f"  Attributes: {message.attributes}")


def numbered(messages: List[str]) -> List[str]:
    return [f"Message {i}: {text}" for i, text in enumerate(messages, start=1)]


def publish_all(service: PubSubService, messages: List[str], interval: float) -> int:
    """
    Publishes the messages one at a time, numbered from 1. A failed publish is
    logged and skipped. Returns how many were confirmed.
    """
    published = 0
    for i, payload in enumerate(numbered(messages), start=1):
        try:
            service.publish_message(payload)
            published += 1
            print(f"Published: Message {i}")
        except EmulatorDemoError as e:
            logger.error(f"Failed to publish message {i}: {e}")

        if i < len(messages):
            time.sleep(interval)

    return published


def run(service: PubSubService, messages: List[str]) -> None:
    try:
        service.setup_topic_and_subscription()
    except EmulatorDemoError as e:
        logger.error(f"Failed to setup topic and subscription: {e}")
        sys.exit(1)

    receiver = service.receiver(print_message, expected=numbered(messages)).start()
    try:
        publish_all(service, messages, CFG.publish_interval)

        if not receiver.wait(CFG.receive_timeout):
            logger.warning(
                f"Timed out after {CFG.receive_timeout}s with "
                f"{len(receiver.pending)} of {len(messages)} messages still missing"
            )
    finally:
        receiver.stop()

    print("Demo completed!")


def main():
    try:
        publisher = get_publisher_client()
        subscriber = get_subscriber_client()
    except Exception as e:
        logger.error(f"Failed to create pubsub client: {e}")
        sys.exit(1)

    try:
        service = PubSubService(
            publisher,
            subscriber,
            project_id=CFG.project_id,
            topic_name=CFG.topic_name,
            subscription_id=CFG.subscription_id,
        )
        run(service, CFG.messages)
    finally:
        publisher.stop()
        subscriber.close()


if __name__ == "__main__":
    main()
