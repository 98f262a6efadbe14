from typing import List

from pydantic_settings import BaseSettings
from emulator_demos.utils.logger import logger


class Config(BaseSettings):
    package_name: str = "emulator_demos"
    log_level: str = "INFO"

    project_id: str = "test-project"

    # Cloud Storage (fake-gcs-server)
    storage_emulator_host: str = "http://localhost:4443"
    bucket_name: str = "test-bucket"
    file_name: str = "test-file.txt"
    file_content: str = "Hello, this is a test file for GCS emulator!"

    # PubSub emulator
    pubsub_emulator_host: str = "localhost:8085"
    topic_name: str = "test-topic"
    subscription_id: str = "test-subscription"
    messages: List[str] = [
        "Hello from Pub/Sub emulator!",
        "This is message number 2",
        "Testing Pub/Sub functionality",
        "Final test message",
    ]
    publish_interval: float = 1.0
    publish_timeout: float = 30.0
    receive_timeout: float = 10.0


CFG = Config()

logger.setLevel(CFG.log_level)
logger.info(f"Config: {CFG}")
