from __future__ import annotations

from datetime import datetime, timezone

import pytest
from google.api_core.exceptions import NotFound


CREATED = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


class FakeBlob:
    def __init__(self, client: FakeStorageClient, bucket_name: str, name: str) -> None:
        self._client = client
        self.bucket_name = bucket_name
        self.name = name
        self.size = None
        self.time_created = None

    def upload_from_string(self, data, content_type=None) -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._client.objects[self.bucket_name][self.name] = (data, content_type)

    def download_as_bytes(self) -> bytes:
        objects = self._client.objects.get(self.bucket_name, {})
        if self.name not in objects:
            raise NotFound(f"No such object: {self.bucket_name}/{self.name}")
        return objects[self.name][0]


class FakeBucket:
    def __init__(self, client: FakeStorageClient, name: str) -> None:
        self._client = client
        self.name = name

    def exists(self) -> bool:
        return self.name in self._client.objects

    def blob(self, name: str) -> FakeBlob:
        return FakeBlob(self._client, self.name, name)


class FakeStorageClient:
    """In-memory stand-in for google.cloud.storage.Client."""

    def __init__(self) -> None:
        self.objects: dict[str, dict[str, tuple[bytes, str]]] = {}
        self.created_in: dict[str, str] = {}
        self.closed = False

    def bucket(self, name: str) -> FakeBucket:
        return FakeBucket(self, name)

    def create_bucket(self, bucket, project=None):
        if bucket.name in self.objects:
            raise AssertionError(f"bucket {bucket.name} created twice")
        self.objects[bucket.name] = {}
        self.created_in[bucket.name] = project
        return bucket

    def list_blobs(self, bucket_name: str):
        if bucket_name not in self.objects:
            raise NotFound(f"No such bucket: {bucket_name}")
        for name, (data, _) in self.objects[bucket_name].items():
            blob = FakeBlob(self, bucket_name, name)
            blob.size = len(data)
            blob.time_created = CREATED
            yield blob

    def close(self) -> None:
        self.closed = True


class FakePublishFuture:
    def __init__(self, message_id: str | None = None, error: Exception | None = None) -> None:
        self._message_id = message_id
        self._error = error

    def result(self, timeout=None) -> str:
        if self._error is not None:
            raise self._error
        return self._message_id


class FakeStreamingPullFuture:
    def __init__(self) -> None:
        self._callbacks = []
        self._cancelled = False
        self._error = None

    def add_done_callback(self, fn) -> None:
        self._callbacks.append(fn)

    def cancel(self) -> bool:
        self._cancelled = True
        for fn in self._callbacks:
            fn(self)
        return True

    def cancelled(self) -> bool:
        return self._cancelled

    def exception(self, timeout=None):
        return self._error

    def result(self, timeout=None):
        if self._error is not None:
            raise self._error
        return None

    def fail(self, error: Exception) -> None:
        self._error = error
        for fn in self._callbacks:
            fn(self)


class FakeMessage:
    def __init__(self, message_id: str, data: bytes, attributes: dict[str, str]) -> None:
        self.message_id = message_id
        self.data = data
        self.attributes = attributes
        self.publish_time = CREATED
        self.acked = False

    def ack(self) -> None:
        self.acked = True


class FakeBroker:
    """Shared state between the fake publisher and subscriber clients."""

    def __init__(self) -> None:
        self.topics: set[str] = set()
        self.subscriptions: dict[str, str] = {}
        self.streams: dict[str, tuple] = {}
        self.delivered: list[FakeMessage] = []
        self.published = 0


class FakePublisherClient:
    def __init__(self, broker: FakeBroker) -> None:
        self.broker = broker
        self.fail_publish: Exception | None = None
        self.stopped = False

    @staticmethod
    def topic_path(project: str, topic: str) -> str:
        return f"projects/{project}/topics/{topic}"

    def get_topic(self, request):
        if request["topic"] not in self.broker.topics:
            raise NotFound(f"Topic not found: {request['topic']}")
        return request["topic"]

    def create_topic(self, request):
        if request["name"] in self.broker.topics:
            raise AssertionError(f"topic {request['name']} created twice")
        self.broker.topics.add(request["name"])
        return request["name"]

    def publish(self, topic: str, data: bytes, **attrs):
        if self.fail_publish is not None:
            return FakePublishFuture(error=self.fail_publish)

        self.broker.published += 1
        message_id = str(self.broker.published)
        for sub_path, sub_topic in self.broker.subscriptions.items():
            if sub_topic == topic and sub_path in self.broker.streams:
                _, callback = self.broker.streams[sub_path]
                message = FakeMessage(message_id, data, dict(attrs))
                self.broker.delivered.append(message)
                callback(message)
        return FakePublishFuture(message_id=message_id)

    def stop(self) -> None:
        self.stopped = True


class FakeSubscriberClient:
    def __init__(self, broker: FakeBroker) -> None:
        self.broker = broker
        self.closed = False

    @staticmethod
    def subscription_path(project: str, subscription: str) -> str:
        return f"projects/{project}/subscriptions/{subscription}"

    def get_subscription(self, request):
        if request["subscription"] not in self.broker.subscriptions:
            raise NotFound(f"Subscription does not exist: {request['subscription']}")
        return request["subscription"]

    def create_subscription(self, request):
        if request["name"] in self.broker.subscriptions:
            raise AssertionError(f"subscription {request['name']} created twice")
        self.broker.subscriptions[request["name"]] = request["topic"]
        return request["name"]

    def subscribe(self, subscription: str, callback):
        future = FakeStreamingPullFuture()
        self.broker.streams[subscription] = (future, callback)
        return future

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def storage_client() -> FakeStorageClient:
    return FakeStorageClient()


@pytest.fixture
def broker() -> FakeBroker:
    return FakeBroker()


@pytest.fixture
def publisher(broker: FakeBroker) -> FakePublisherClient:
    return FakePublisherClient(broker)


@pytest.fixture
def subscriber(broker: FakeBroker) -> FakeSubscriberClient:
    return FakeSubscriberClient(broker)
