# main.py
from fastapi import Body, Depends, FastAPI, Path, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from typing import Any, Optional
import logging

import crud
from config import settings
from errors import (
    AlreadyExists,
    ConflictingFilters,
    InvalidType,
    MissingInput,
    NotFound,
    StringServiceError,
    Unparsable,
)
from models import InterpretedQuery, NaturalLanguageResponse, StringListResponse, StringRecord
from store import StringStore, build_store

# --- Config ---
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version=settings.version)

store = build_store(settings)


def get_store() -> StringStore:
    return store


@app.on_event("startup")
def on_startup():
    logger.info(f"{settings.app_name} started with {store.backend} store")


# --- Error handling ---
ERROR_STATUS = {
    MissingInput: 400,
    InvalidType: 422,
    AlreadyExists: 409,
    NotFound: 404,
    Unparsable: 400,
    ConflictingFilters: 422,
}


@app.exception_handler(StringServiceError)
async def string_service_error_handler(request: Request, exc: StringServiceError):
    status_code = ERROR_STATUS.get(type(exc), 400)
    logger.info(f"{request.method} {request.url.path} -> {status_code}: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = {}
    for error in exc.errors():
        field = str(error["loc"][-1]) if error.get("loc") else "body"
        errors[field] = error["msg"]
    logger.warning(f"Rejected {request.method} {request.url.path}: {errors}")
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid request body or parameters", "errors": errors},
    )


# --- Endpoints ---
@app.get("/")
def root():
    return {
        "message": settings.app_name,
        "version": settings.version,
        "endpoints": {
            "POST /strings": "Analyze and store a string",
            "GET /strings/{string_value}": "Get a stored string",
            "GET /strings": "List strings with optional filters",
            "GET /strings/filter-by-natural-language": "Filter using a natural language query",
            "DELETE /strings/{string_value}": "Delete a string",
        },
    }


@app.get("/health")
def health_check(store: StringStore = Depends(get_store)):
    return {"status": "healthy", "backend": store.backend, "count": len(store)}


@app.post("/strings/", response_model=StringRecord, status_code=201, include_in_schema=False)
@app.post("/strings", response_model=StringRecord, status_code=201)
def create_string(payload: Any = Body(None), store: StringStore = Depends(get_store)):
    return crud.create_string(store, payload)


@app.get("/strings/", response_model=StringListResponse, include_in_schema=False)
@app.get("/strings", response_model=StringListResponse)
def list_strings(
    is_palindrome: Optional[str] = Query(None),
    min_length: Optional[str] = Query(None),
    max_length: Optional[str] = Query(None),
    word_count: Optional[str] = Query(None),
    contains_character: Optional[str] = Query(None),
    store: StringStore = Depends(get_store),
):
    # raw strings on purpose: unparsable values are dropped, not rejected
    data, applied = crud.list_strings(
        store,
        {
            "is_palindrome": is_palindrome,
            "min_length": min_length,
            "max_length": max_length,
            "word_count": word_count,
            "contains_character": contains_character,
        },
    )
    return StringListResponse(data=data, count=len(data), filters_applied=applied.applied())


@app.get("/strings/filter-by-natural-language/", response_model=NaturalLanguageResponse, include_in_schema=False)
@app.get("/strings/filter-by-natural-language", response_model=NaturalLanguageResponse)
def filter_by_nl(query: Optional[str] = Query(None), store: StringStore = Depends(get_store)):
    data, parsed = crud.filter_by_natural_language(store, query)
    return NaturalLanguageResponse(
        data=data,
        count=len(data),
        interpreted_query=InterpretedQuery(original=query, parsed_filters=parsed.applied()),
    )


@app.get("/strings/{string_value:path}", response_model=StringRecord)
def get_string(
    string_value: str = Path(..., description="URL-encoded string value to look up"),
    store: StringStore = Depends(get_store),
):
    return crud.get_string(store, string_value)


@app.delete("/strings/{string_value:path}", status_code=204)
def delete_string(string_value: str = Path(...), store: StringStore = Depends(get_store)):
    crud.delete_string(store, string_value)
    return Response(status_code=204)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.host, port=settings.port)
