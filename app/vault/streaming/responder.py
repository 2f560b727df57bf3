"""Stream responder -- 200 / 206 / 416 responses over a stored file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO

from aiohttp import hdrs, web

from ..errors import StreamIOError
from ..util.async_helpers import run_sync
from .ranges import RangeResult, Satisfiable, Unsatisfiable, parse_range

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


async def stream_file(
    request: web.Request,
    path: Path,
    content_type: str,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> web.StreamResponse:
    """Serve *path* honouring the request's ``Range`` header."""
    try:
        st = await run_sync(path.stat)
    except OSError as exc:
        raise StreamIOError(f"Cannot stat {path}: {exc}") from exc
    result = parse_range(request.headers.get(hdrs.RANGE), st.st_size)
    return await respond(
        request, path, result, content_type,
        file_size=st.st_size, chunk_size=chunk_size,
    )


async def respond(
    request: web.Request,
    path: Path,
    range_result: RangeResult,
    content_type: str,
    *,
    file_size: int | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> web.StreamResponse:
    """Emit the response for *range_result*, reading only the needed window.

    Raises :class:`StreamIOError`.  When ``committed`` is set the headers
    are already on the wire and the connection has to be aborted.
    """
    if file_size is None:
        try:
            file_size = (await run_sync(path.stat)).st_size
        except OSError as exc:
            raise StreamIOError(f"Cannot stat {path}: {exc}") from exc

    if isinstance(range_result, Unsatisfiable):
        logger.info("Unsatisfiable range for %s: %s", path.name, range_result.reason)
        return web.json_response(
            {"error": f"Range Not Satisfiable: {range_result.reason}"},
            status=416,
            headers={hdrs.CONTENT_RANGE: f"bytes */{file_size}"},
        )

    headers = {
        hdrs.CONTENT_TYPE: content_type,
        hdrs.ACCEPT_RANGES: "bytes",
    }
    if isinstance(range_result, Satisfiable):
        status = 206
        offset, remaining = range_result.start, range_result.length
        headers[hdrs.CONTENT_RANGE] = range_result.content_range(file_size)
    else:
        status = 200
        offset, remaining = 0, file_size

    if request.method == hdrs.METH_HEAD:
        resp = web.StreamResponse(status=status, headers=headers)
        resp.content_length = remaining
        await resp.prepare(request)
        await resp.write_eof()
        return resp

    try:
        fh: BinaryIO = await run_sync(open, path, "rb")
    except OSError as exc:
        raise StreamIOError(f"Cannot open {path}: {exc}") from exc

    try:
        if offset:
            try:
                await run_sync(fh.seek, offset)
            except OSError as exc:
                raise StreamIOError(f"Cannot seek {path} to {offset}: {exc}") from exc

        resp = web.StreamResponse(status=status, headers=headers)
        resp.content_length = remaining
        await resp.prepare(request)

        while remaining > 0:
            try:
                chunk = await run_sync(fh.read, min(chunk_size, remaining))
            except OSError as exc:
                logger.error("Read failed mid-stream for %s", path, exc_info=True)
                raise StreamIOError(f"Read failed: {exc}", committed=True) from exc
            if not chunk:
                logger.error("%s shrank while streaming (%d bytes short)", path, remaining)
                raise StreamIOError(f"{path.name} truncated mid-stream", committed=True)
            try:
                await resp.write(chunk)
            except ConnectionResetError:
                logger.debug("Client went away while streaming %s", path.name)
                return resp
            remaining -= len(chunk)

        await resp.write_eof()
        return resp
    finally:
        fh.close()
