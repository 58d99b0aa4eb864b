"""파일 업로드/다운로드/삭제 API 라우트

storage 호출은 모두 blocking이므로 asyncio.to_thread로 실행한다.
"""

import asyncio
from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, File, Request, UploadFile, status
from fastapi.responses import PlainTextResponse, StreamingResponse

from src.infra.storage.errors import StorageError
from src.routes.errors import check_handle, to_http_error
from src.schemas.base import BaseSchema
from src.services import files as files_service
from src.services import upload as upload_service
from src.services import upload_limit as upload_limit_service

router = APIRouter(tags=["files"])

_CLI_AGENTS = ("curl", "Wget")


class UploadResponse(BaseSchema):
    handle: str
    filepath: str
    url: str
    delete_command: str
    size: int


class DeleteResponse(BaseSchema):
    message: str
    deleted: int


def _base_url(req: Request) -> str:
    """리버스 프록시 뒤에서도 https 링크를 만들 수 있도록 X-Forwarded-Proto 반영"""
    scheme = req.url.scheme
    if req.headers.get("x-forwarded-proto") == "https":
        scheme = "https"
    host = req.headers.get("host") or req.url.netloc
    return f"{scheme}://{host}"


def _upload_response(
    req: Request, result: upload_service.UploadResult
) -> UploadResponse | PlainTextResponse:
    url = f"{_base_url(req)}/{result.handle}/{quote(result.filepath)}"

    user_agent = req.headers.get("user-agent", "")
    if any(agent in user_agent for agent in _CLI_AGENTS):
        body = (
            "\n=========================\n\n"
            f"Uploaded Success, size {result.size}\n\n"
            "Get File:\n\n"
            f"wget {url}\n\n"
            "Delete File:\n\n"
            f"curl -X DELETE {url}\n\n"
            "=========================\n\n"
        )
        return PlainTextResponse(body, status_code=status.HTTP_201_CREATED)

    return UploadResponse(
        handle=result.handle,
        filepath=result.filepath,
        url=url,
        delete_command=f"curl -X DELETE '{url}'",
        size=result.size,
    )


@router.post("/", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_form(
    req: Request, file: Annotated[UploadFile, File()]
) -> UploadResponse | PlainTextResponse:
    """multipart 업로드 (파일명이 저장 경로)"""
    try:
        result = await asyncio.to_thread(
            upload_service.create_upload, file.filename or "", file.file
        )
    except StorageError as e:
        raise to_http_error(e) from None
    finally:
        await file.close()

    return _upload_response(req, result)


@router.put(
    "/{filepath:path}", response_model=UploadResponse, status_code=status.HTTP_201_CREATED
)
async def upload_raw(req: Request, filepath: str) -> UploadResponse | PlainTextResponse:
    """raw body 업로드 (URL 경로가 저장 경로)"""
    try:
        limit = await asyncio.to_thread(upload_limit_service.get_max_upload_size)
    except StorageError as e:
        raise to_http_error(e) from None

    body = await upload_service.spool_body(req.stream(), limit)
    try:
        result = await asyncio.to_thread(upload_service.create_upload, filepath, body, limit)
    except StorageError as e:
        raise to_http_error(e) from None
    finally:
        body.close()

    return _upload_response(req, result)


@router.get("/{handle}/{filepath:path}")
async def download(handle: str, filepath: str) -> StreamingResponse:
    check_handle(handle)
    try:
        key, stream = await asyncio.to_thread(files_service.open_file, handle, filepath)
    except StorageError as e:
        raise to_http_error(e) from None

    return StreamingResponse(
        files_service.iter_stream(stream),
        media_type="application/octet-stream",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(key.filename)}"},
    )


async def _delete_whole_handle(handle: str) -> DeleteResponse:
    check_handle(handle)
    try:
        deleted = await asyncio.to_thread(files_service.delete_handle, handle)
    except StorageError as e:
        raise to_http_error(e) from None
    return DeleteResponse(message=f"Successfully deleted {handle}", deleted=deleted)


@router.delete("/{handle}", response_model=DeleteResponse)
async def delete_handle(handle: str) -> DeleteResponse:
    """handle 아래 전체 삭제"""
    return await _delete_whole_handle(handle)


@router.delete("/{handle}/{filepath:path}", response_model=DeleteResponse)
async def delete_file(handle: str, filepath: str) -> DeleteResponse:
    # 경로가 비어 있으면 ("/{handle}/") handle 전체 삭제
    if not filepath.strip().strip("/"):
        return await _delete_whole_handle(handle)

    check_handle(handle)
    try:
        relative = await asyncio.to_thread(files_service.delete_file, handle, filepath)
    except StorageError as e:
        raise to_http_error(e) from None

    return DeleteResponse(message=f"Successfully deleted {relative}", deleted=1)

