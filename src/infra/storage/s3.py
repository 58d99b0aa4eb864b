"""S3 호환 object store 구현체 (AWS S3, Cloudflare R2, MinIO)

object key = storage root 기준 상대 경로 (`<handle>/<path>`). 디렉터리 마커는 만들지 않는다.
"""

import io
import logging
from collections.abc import Iterator
from datetime import datetime
from typing import TYPE_CHECKING, BinaryIO, cast

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from src.constants import Limits
from src.infra.storage.base import StoredObject
from src.infra.storage.errors import (
    BackendIOError,
    ForbiddenRootError,
    ObjectNotFoundError,
)
from src.infra.storage.paths import StorageKey

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}
_S3_ERRORS = (ClientError, BotoCoreError)


def _is_not_found(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") in _NOT_FOUND_CODES


def create_s3_client(
    endpoint_url: str | None,
    region: str,
    access_key_id: str,
    secret_access_key: str,
) -> "S3Client":
    """path-style 주소 사용 (R2/MinIO 호환)"""
    return boto3.client(
        "s3",
        endpoint_url=endpoint_url,
        region_name=region,
        aws_access_key_id=access_key_id or None,
        aws_secret_access_key=secret_access_key or None,
        config=Config(s3={"addressing_style": "path"}),
    )


class S3Storage:
    def __init__(self, client: "S3Client", bucket: str, strict_prefix_delete: bool = False) -> None:
        self.client = client
        self.bucket = bucket
        self.strict_prefix_delete = strict_prefix_delete

    def save(self, key: StorageKey, stream: BinaryIO) -> int:
        """스트림 전체를 메모리에 버퍼링한 뒤 put_object 한 번으로 업로드

        크기 제한은 스트림(LimitedReader)이 읽는 도중에 검사하므로
        제한을 넘는 본문은 put_object 전에 예외로 중단된다.
        """
        buffer = io.BytesIO()
        while chunk := stream.read(Limits.BUFFER_SIZE):
            buffer.write(chunk)

        body = buffer.getvalue()
        try:
            self.client.put_object(Bucket=self.bucket, Key=key.object_key, Body=body)
        except _S3_ERRORS as e:
            raise BackendIOError(f"S3 업로드 실패: {key.object_key}") from e
        return len(body)

    def open(self, key: StorageKey) -> BinaryIO:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key.object_key)
        except ClientError as e:
            if _is_not_found(e):
                raise ObjectNotFoundError(key.object_key) from e
            raise BackendIOError(f"S3 다운로드 실패: {key.object_key}") from e
        except BotoCoreError as e:
            raise BackendIOError(f"S3 다운로드 실패: {key.object_key}") from e
        return cast(BinaryIO, response["Body"])

    def delete(self, key: StorageKey) -> None:
        """S3 delete_object는 없는 키에도 성공하므로 head_object로 존재 여부 먼저 확인"""
        if key.is_root:
            raise ForbiddenRootError("storage root는 삭제할 수 없음")
        try:
            self.client.head_object(Bucket=self.bucket, Key=key.object_key)
            self.client.delete_object(Bucket=self.bucket, Key=key.object_key)
        except ClientError as e:
            if _is_not_found(e):
                raise ObjectNotFoundError(key.object_key) from e
            raise BackendIOError(f"S3 삭제 실패: {key.object_key}") from e
        except BotoCoreError as e:
            raise BackendIOError(f"S3 삭제 실패: {key.object_key}") from e

    def delete_prefix(self, key: StorageKey) -> int:
        """handle prefix 아래 객체를 페이지 단위로 삭제

        prefix 아래 객체가 하나도 없으면 ObjectNotFoundError.
        개별 삭제 실패는 로그만 남기고 계속 진행 (strict_prefix_delete=True면 즉시 실패).
        목록 조회 실패는 항상 BackendIOError.
        """
        if key.is_root:
            raise ForbiddenRootError("storage root는 삭제할 수 없음")

        prefix = f"{key.object_key}/"
        found = deleted = 0
        for obj in self.list_objects(prefix):
            found += 1
            if self._delete_object(obj.key, strict=self.strict_prefix_delete):
                deleted += 1

        if found == 0:
            raise ObjectNotFoundError(key.object_key)
        logger.info(f"S3 prefix 삭제 완료: {prefix} ({deleted}개)")
        return deleted

    def list_objects(self, prefix: str = "") -> Iterator[StoredObject]:
        paginator = self.client.get_paginator("list_objects_v2")
        try:
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                for obj in page.get("Contents", []):
                    object_key = obj.get("Key")
                    last_modified = obj.get("LastModified")
                    if not object_key or last_modified is None:
                        continue
                    yield StoredObject(
                        key=object_key,
                        size=int(obj.get("Size") or 0),
                        last_modified=last_modified,
                    )
        except _S3_ERRORS as e:
            raise BackendIOError(f"S3 목록 조회 실패: prefix={prefix!r}") from e

    def remove_expired(self, cutoff: datetime) -> int:
        """객체 단위 만료 (LastModified 기준)

        object store는 prefix 단위 최신 수정 시각을 저렴하게 제공하지 않으므로
        로컬 백엔드(handle 단위)와 달리 객체마다 판단한다.
        """
        removed = 0
        for obj in self.list_objects():
            if obj.last_modified > cutoff:
                continue
            if self._delete_object(obj.key, strict=False):
                logger.info(f"S3 cleanup: 만료 객체 삭제 {obj.key}")
                removed += 1
        return removed

    def _delete_object(self, object_key: str, strict: bool) -> bool:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=object_key)
        except _S3_ERRORS as e:
            if strict:
                raise BackendIOError(f"S3 객체 삭제 실패: {object_key}") from e
            logger.error(f"S3 객체 삭제 실패: {object_key} - {e}")
            return False
        return True

