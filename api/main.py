import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse

from categories import router as categories_router
from core import errors, factory, settings
from questions import router as questions_router

settings.configure_logging()
logger = logging.getLogger("quiz_api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # One store (and DB pool) per process.
    app.state.store = await factory.open_store()
    try:
        yield
    finally:
        await factory.close_store(app.state.store)
        app.state.store = None


app = FastAPI(title="Quiz API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=600,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        logger.info(
            "request method=%s path=%s status=%s duration_ms=%.1f origin=%s",
            request.method,
            request.url.path,
            status_code,
            (time.perf_counter() - started) * 1000,
            request.headers.get("origin", "-"),
        )


@app.exception_handler(errors.QuizError)
async def quiz_error_handler(request: Request, exc: errors.QuizError) -> JSONResponse:
    if isinstance(exc, errors.StoreError):
        logger.error("store_error method=%s path=%s detail=%s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    # Shape errors are plain bad requests for this API.
    return JSONResponse(
        status_code=400,
        content={
            "detail": "Invalid data.",
            "error": errors.ValidationError.code,
            "errors": jsonable_errors(exc),
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(err.get("loc", ())), "msg": str(err.get("msg", "")), "type": str(err.get("type", ""))}
        for err in exc.errors()
    ]


app.include_router(categories_router.router, tags=["categories"])
app.include_router(questions_router.router, tags=["questions"])


ENDPOINTS = [
    ("GET", "/categories", "List all categories"),
    ("GET", "/categories/:slug", "Category with its questions and answers"),
    ("POST", "/category", "Create a category"),
    ("PATCH", "/category/:slug", "Update a category"),
    ("DELETE", "/category/:slug", "Delete a category and everything in it"),
    ("GET", "/questions", "List all questions"),
    ("GET", "/questions/category/:slug", "Questions in a category"),
    ("GET", "/questions/:id", "One question with its answers"),
    ("POST", "/question", "Create a question with answers"),
    ("PATCH", "/question/:id", "Update a question"),
    ("DELETE", "/question/:id", "Delete a question and its answers"),
]


@app.get("/", response_class=HTMLResponse)
def root() -> str:
    items = "\n".join(
        f"<li><code>{method} {path}</code> - {description}</li>" for method, path, description in ENDPOINTS
    )
    return f"""<html>
  <head><title>Quiz API</title></head>
  <body>
    <h1>Quiz API</h1>
    <p>Server is running.</p>
    <h2>Endpoints</h2>
    <ul>
{items}
    </ul>
  </body>
</html>"""


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
