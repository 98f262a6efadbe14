"""
Walks through basic Cloud Storage calls against a local fake-gcs-server:
create a bucket, upload a file, list the bucket and read the file back.
"""

import sys
from typing import NoReturn

from emulator_demos.config import CFG
from emulator_demos.exceptions import EmulatorDemoError
from emulator_demos.services.storage import StorageService, get_storage_client
from emulator_demos.utils.logger import logger


def fatal(step: str, error: Exception) -> NoReturn:
    logger.error(f"Failed to {step}: {error}")
    sys.exit(1)


def run(service: StorageService, file_name: str, content: str) -> None:
    try:
        service.create_bucket_if_not_exists()
    except EmulatorDemoError as e:
        fatal("create bucket", e)

    try:
        service.write_file(file_name, content)
    except EmulatorDemoError as e:
        fatal("write file", e)

    print(f"Successfully wrote file '{file_name}' to bucket '{service.bucket_name}'")

    print("\nListing files in bucket:")
    try:
        for stored_object in service.list_files():
            print(stored_object.describe())
    except EmulatorDemoError as e:
        fatal("list files", e)

    print(f"\nReading file '{file_name}' content:")
    try:
        data = service.read_file(file_name)
    except EmulatorDemoError as e:
        fatal("read file", e)

    print(f"Content: {data.decode('utf-8')}")


def main():
    try:
        client = get_storage_client()
    except Exception as e:
        fatal("create storage client", e)

    try:
        service = StorageService(client, CFG.bucket_name, CFG.project_id)
        run(service, CFG.file_name, CFG.file_content)
    finally:
        client.close()


if __name__ == "__main__":
    main()
