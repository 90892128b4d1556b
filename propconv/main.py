import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, UploadFile, File, HTTPException
from .models import FormatRequest, FormatResponse, HealthResponse, ParseRequest, ParseResponse
from .convert import format_mapping, parse_text, parse_upload
from .rules import UPLOAD_EXTENSIONS


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=logging.INFO)
    yield


app = FastAPI(
    title="properties-converter",
    description="Convert key=value properties text to a mapping and back",
    version="0.1.0",
    lifespan=lifespan,
)

@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}

@app.post("/parse", response_model=ParseResponse)
def parse(body: ParseRequest):
    return parse_text(body.text)

@app.post("/parse/file", response_model=ParseResponse)
async def parse_file(file: UploadFile = File(...)):
    if not (file.filename or "").lower().endswith(UPLOAD_EXTENSIONS):
        raise HTTPException(status_code=422, detail="Only .properties or .txt files are supported")

    raw = await file.read()
    return parse_upload(raw)

@app.post("/format", response_model=FormatResponse)
def format_properties(body: FormatRequest):
    return format_mapping(body.properties)
