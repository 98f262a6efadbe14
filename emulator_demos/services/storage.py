from typing import List, Union

from google.auth.credentials import AnonymousCredentials
from google.cloud import storage

from emulator_demos.config import CFG
from emulator_demos.exceptions import StorageOperationError
from emulator_demos.models.storage import StoredObject
from emulator_demos.utils.logger import logger


def get_storage_client() -> storage.Client:
    """
    Builds a Cloud Storage client pointed at the local storage emulator.
    """
    try:
        return storage.Client(
            project=CFG.project_id,
            credentials=AnonymousCredentials(),
            client_options={"api_endpoint": CFG.storage_emulator_host},
        )

    except Exception as e:
        logger.error(f"Error building storage client for {CFG.storage_emulator_host}: {e}")
        raise


class StorageService:
    """
    Wraps the bucket and object calls used by the storage walkthrough.
    """

    def __init__(
        self,
        client: storage.Client,
        bucket_name: str = CFG.bucket_name,
        project_id: str = CFG.project_id,
    ):
        self.client = client
        self.bucket_name = bucket_name
        self.project_id = project_id

    def create_bucket_if_not_exists(self) -> bool:
        """
        Creates the bucket unless it already exists. Returns True if it was created.
        """
        bucket = self.client.bucket(self.bucket_name)

        try:
            exists = bucket.exists()
        except Exception as e:
            logger.error(f"Error checking bucket {self.bucket_name}: {e}")
            raise StorageOperationError(
                "check if bucket exists", self.bucket_name, cause=e
            ) from e

        if exists:
            print(f"Bucket '{self.bucket_name}' already exists")
            return False

        try:
            self.client.create_bucket(bucket, project=self.project_id)
        except Exception as e:
            logger.error(f"Error creating bucket {self.bucket_name}: {e}")
            raise StorageOperationError("create bucket", self.bucket_name, cause=e) from e

        print(f"Created bucket '{self.bucket_name}'")
        return True

    def write_file(self, file_name: str, content: Union[str, bytes]) -> None:
        blob = self.client.bucket(self.bucket_name).blob(file_name)
        content_type = "text/plain" if isinstance(content, str) else "application/octet-stream"

        try:
            blob.upload_from_string(content, content_type=content_type)
        except Exception as e:
            logger.error(f"Error writing {file_name} to {self.bucket_name}: {e}")
            raise StorageOperationError(
                "write content", self.bucket_name, file_name, cause=e
            ) from e

        logger.info(f"Uploaded gs://{self.bucket_name}/{file_name}")

    def list_files(self) -> List[StoredObject]:
        """
        Lists every object in the bucket. An empty bucket yields an empty list.
        """
        try:
            return [
                StoredObject(name=blob.name, size=blob.size or 0, created=blob.time_created)
                for blob in self.client.list_blobs(self.bucket_name)
            ]
        except Exception as e:
            logger.error(f"Error listing objects in {self.bucket_name}: {e}")
            raise StorageOperationError("iterate objects", self.bucket_name, cause=e) from e

    def read_file(self, file_name: str) -> bytes:
        blob = self.client.bucket(self.bucket_name).blob(file_name)

        try:
            return blob.download_as_bytes()
        except Exception as e:
            logger.error(f"Error reading {file_name} from {self.bucket_name}: {e}")
            raise StorageOperationError(
                "read content", self.bucket_name, file_name, cause=e
            ) from e
