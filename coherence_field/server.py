"""
HTTP surface for the coherence field engine.

FastAPI app exposing the engine operations. Engine errors map to HTTP
status codes: unknown records 404, conflicts with current state 409,
invalid arguments 422.

Run with:
    coherence-field-server --port 8420

(c) 2026 Anywave Creations
MIT License
"""

from typing import Any, Dict, List, Optional
import logging
import sys

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
import uvicorn

from .constants import HarmonicCycle
from .engine import CoherenceFieldEngine, create_engine
from .errors import (
    CoherenceFieldError,
    DuplicateCoupling,
    NoCouplingRecord,
    NoParticipantRecord,
    ParticipantAlreadyEntered,
    ReserveDepleted,
    StaleEpoch,
    TooEarlyToDecohere,
)
from .models import Participant

logger = logging.getLogger("coherence-field")

NOT_FOUND = (NoParticipantRecord, NoCouplingRecord)
CONFLICT = (
    DuplicateCoupling,
    ParticipantAlreadyEntered,
    ReserveDepleted,
    StaleEpoch,
    TooEarlyToDecohere,
)


def status_code_for(error: CoherenceFieldError) -> int:
    if isinstance(error, NOT_FOUND):
        return 404
    if isinstance(error, CONFLICT):
        return 409
    return 422


# ============================================================================
# Request / Response Models
# ============================================================================

class EnterRequest(BaseModel):
    participant_id: str = Field(..., min_length=1)
    amplitude: int
    cycle: HarmonicCycle = HarmonicCycle.FULL
    holdings: Optional[int] = None
    phase: Optional[float] = None


class PhaseUpdateRequest(BaseModel):
    dt: Optional[float] = None


class DecohereRequest(BaseModel):
    force: bool = False


class CoupleRequest(BaseModel):
    source_id: str
    target_id: str
    strength: float
    locked_amplitude: int


class AdvanceRequest(BaseModel):
    epoch_index: int
    override_psi: Optional[float] = None
    override_r: Optional[float] = None
    override_depth: Optional[float] = None


class StepRequest(BaseModel):
    dt: Optional[float] = None
    epochs: int = Field(1, ge=1)


class FundRequest(BaseModel):
    amount: int
    golden: bool = False


def _participant_view(p: Participant) -> Dict[str, Any]:
    return p.to_dict()


# ============================================================================
# App Factory
# ============================================================================

def create_app(engine: Optional[CoherenceFieldEngine] = None) -> FastAPI:
    """Build a FastAPI app bound to one engine instance."""
    engine = engine or create_engine()
    app = FastAPI(
        title="Coherence Field Engine",
        description="Kuramoto coherence field with multi-channel emissions",
        version="1.0.0",
    )
    app.state.engine = engine

    @app.exception_handler(CoherenceFieldError)
    async def _field_error(request: Request, exc: CoherenceFieldError):
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status_code_for(exc),
            content={'error': exc.code, 'detail': str(exc)},
        )

    @app.get("/status")
    async def status():
        return engine.get_status()

    @app.get("/snapshot")
    async def snapshot():
        return engine.snapshot.to_dict()

    @app.get("/events")
    async def events(limit: int = Query(50, ge=1)):
        return [e.to_dict() for e in engine.events.recent(limit)]

    @app.post("/participants")
    async def enter(req: EnterRequest):
        p = engine.enter(req.participant_id, req.amplitude, req.cycle,
                         holdings=req.holdings, phase=req.phase)
        return _participant_view(p)

    @app.get("/participants")
    async def list_participants() -> List[str]:
        return sorted(engine.snapshot.participants)

    @app.get("/participants/{participant_id}")
    async def get_participant(participant_id: str):
        return _participant_view(engine.get_participant(participant_id))

    @app.get("/participants/{participant_id}/governance")
    async def governance(participant_id: str):
        return {
            'participant_id': participant_id,
            'governance_weight': engine.governance_weight(participant_id),
        }

    @app.post("/participants/{participant_id}/phase")
    async def update_phase(participant_id: str, req: PhaseUpdateRequest):
        phase = engine.update_participant_phase(participant_id, req.dt)
        return {'participant_id': participant_id, 'phase': phase, 'epoch': engine.epoch}

    @app.post("/participants/{participant_id}/claim")
    async def claim(participant_id: str):
        return engine.claim_emissions(participant_id).to_dict()

    @app.post("/participants/{participant_id}/decohere")
    async def decohere(participant_id: str, req: DecohereRequest):
        return engine.decohere(participant_id, force=req.force).to_dict()

    @app.post("/participants/{participant_id}/exit")
    async def request_exit(participant_id: str, req: DecohereRequest):
        engine.request_exit(participant_id, force=req.force)
        return {'participant_id': participant_id, 'queued': True}

    @app.post("/couplings")
    async def couple(req: CoupleRequest):
        coupling = engine.phase_couple(req.source_id, req.target_id,
                                       req.strength, req.locked_amplitude)
        return coupling.to_dict()

    @app.delete("/couplings/{source_id}/{target_id}")
    async def uncouple(source_id: str, target_id: str):
        return engine.uncouple(source_id, target_id).to_dict()

    @app.post("/field/advance")
    async def advance(req: AdvanceRequest):
        snap = engine.advance_field(req.epoch_index, req.override_psi,
                                    req.override_r, req.override_depth)
        return snap.field.to_dict()

    @app.post("/field/step")
    async def step(req: StepRequest):
        snap = engine.run(req.epochs, req.dt)
        return snap.field.to_dict()

    @app.post("/reserve/fund")
    async def fund(req: FundRequest):
        balance = engine.fund_reserve(req.amount, golden=req.golden)
        return {'golden': req.golden, 'balance': balance}

    return app


# ============================================================================
# CLI Entry Point
# ============================================================================

def main():
    """Server entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Coherence Field Engine - HTTP server"
    )
    parser.add_argument(
        "--host", type=str, default="127.0.0.1",
        help="Bind address (default: 127.0.0.1)"
    )
    parser.add_argument(
        "--port", type=int, default=8420,
        help="Server port (default: 8420)"
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format='[coherence-field] %(levelname)s %(message)s',
        stream=sys.stderr,
    )
    uvicorn.run(create_app(), host=args.host, port=args.port, log_level="info")


if __name__ == "__main__":
    main()
