# api.py
from typing import List

print("[API] Booting FastAPI...")

from fastapi import FastAPI, HTTPException, APIRouter
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
from pydantic import BaseModel, Field

_loaded = load_dotenv()
print(f"[API] .env loaded: {_loaded}")

from scorefi.config import ScoringConfig
from scorefi.core.analyze import ScoringEngine
from scorefi.errors import (
    AddressUnresolvable,
    ClassificationIndeterminate,
    ContractAddress,
    DataUnavailable,
    ScoringError,
)
from batch_cli import run_batch

STATUS_BY_ERROR = (
    (AddressUnresolvable, 400),
    (ContractAddress, 422),
    (ClassificationIndeterminate, 503),
    (DataUnavailable, 502),
)

_engine = None


def get_engine() -> ScoringEngine:
    global _engine
    if _engine is None:
        config = ScoringConfig.from_env()
        print(f"[API] Engine config -> {config.describe()}")
        _engine = ScoringEngine(config)
    return _engine


def set_engine(engine) -> None:
    global _engine
    _engine = engine


def _http_error(e: ScoringError) -> HTTPException:
    for cls, status in STATUS_BY_ERROR:
        if isinstance(e, cls):
            return HTTPException(status_code=status, detail={"error": type(e).__name__, "message": str(e)})
    return HTTPException(status_code=500, detail={"error": type(e).__name__, "message": str(e)})


app = FastAPI(title="Score-Fi Credit Engine API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

api = APIRouter(prefix="/api")


@api.get("/health")
def health():
    return {"ok": True}


@api.get("/score/{address}")
def score(address: str):
    print(f"[API] GET /api/score/{address} -> start")
    try:
        out = get_engine().compute_score(address).to_dict()
    except ScoringError as e:
        print(f"[API] /score {type(e).__name__} address={address} -> {e}")
        raise _http_error(e)
    print(f"[API] /score OK address={address} score={out['score']} tier={out['riskLevel']}")
    return out


class BatchJob(BaseModel):
    addresses: List[str]
    concurrency: int = Field(default=2, ge=1, le=8)


@api.post("/batch")
def batch(job: BatchJob):
    print(f"[API] POST /api/batch -> count={len(job.addresses)} conc={job.concurrency}")
    if not job.addresses:
        raise HTTPException(status_code=400, detail="addresses list is empty")
    _, results = run_batch(get_engine(), job.addresses, job.concurrency)
    print(f"[API] /batch completed -> {len(results)} results")
    return {"count": len(results), "results": results}


app.include_router(api)
