from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from .routers import certificates
from .db import init_db
from .errors import CertificateError, CertificateNotFound, RenderFailure, ValidationError
from .logging_setup import setup_logging

setup_logging()

app = FastAPI(title="TrainTrack Certificates API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
def on_startup():
    init_db()

_STATUS_CODES = (
    (ValidationError, 422),
    (CertificateNotFound, 404),
    (RenderFailure, 500),
)

@app.exception_handler(CertificateError)
def handle_certificate_error(request: Request, exc: CertificateError):
    status_code = next((code for cls, code in _STATUS_CODES if isinstance(exc, cls)), 400)
    return JSONResponse(status_code=status_code, content={"code": exc.code, "message": str(exc)})

app.include_router(certificates.router, prefix="/api/certificates", tags=["certificates"])

@app.get("/")
def root():
    return {"ok": True, "service": "certificates-api"}
