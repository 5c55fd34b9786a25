from typing import Any, Optional

from fastapi import HTTPException

from ..store.provider import ErrorKind, StoreError, StoreResult


def raise_for_error(error: Optional[StoreError]) -> None:
    if error is None:
        return
    if error.kind == ErrorKind.NOT_CONFIGURED:
        raise HTTPException(status_code=503, detail=error.message)
    if error.kind == ErrorKind.NOT_FOUND:
        raise HTTPException(status_code=404, detail=error.message)
    if error.kind == ErrorKind.VALIDATION:
        raise HTTPException(status_code=400, detail=error.message)
    if error.kind == ErrorKind.STORE and error.status == 409:
        raise HTTPException(status_code=409, detail=error.message)
    if error.kind == ErrorKind.STORE and error.status is not None and 400 <= error.status < 500:
        raise HTTPException(status_code=400, detail=error.message)
    raise HTTPException(status_code=502, detail=error.message)


def unwrap(result: StoreResult) -> Any:
    raise_for_error(result.error)
    return result.data
