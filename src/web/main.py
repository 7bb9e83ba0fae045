import logging
import os
from typing import List, Optional, Union

import duckdb
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

try:
    from ..ballots.database import ElectionDatabase
    from ..ballots.errors import BallotError
    from ..ballots.preference_table import PreferenceTable
    from ..counting.config import CountConfig
    from ..counting.election import count_table
    from ..counting.irv import IRVRound, IRVTabulator, Outcome, TieBreak, Winner
    from ..counting.verification import ReferenceVerifier
except ImportError:
    from ballots.database import ElectionDatabase
    from ballots.errors import BallotError
    from ballots.preference_table import PreferenceTable
    from counting.config import CountConfig
    from counting.election import count_table
    from counting.irv import IRVRound, IRVTabulator, Outcome, TieBreak, Winner
    from counting.verification import ReferenceVerifier

logger = logging.getLogger(__name__)

DATABASE_ENV = "IRV_DATABASE_PATH"

app = FastAPI(
    title="IRV Vote Counter",
    description="Instant-runoff counting of tabulated ballots",
)

# Global database path, falls back to the environment
db_path = None


class CountRequest(BaseModel):
    candidates: List[str] = Field(..., description="Candidate names in header order")
    ballots: List[List[Optional[int]]] = Field(
        ..., description="Raw preference values per ballot, aligned with candidates"
    )
    threshold: Union[float, str] = 0.5
    tie_break: TieBreak = TieBreak.SIMULTANEOUS
    verify: bool = False


def get_database() -> ElectionDatabase:
    """Get a read-only connection to the configured election database."""
    path = db_path or os.environ.get(DATABASE_ENV)
    if not path:
        raise HTTPException(status_code=500, detail="Database not configured")
    return ElectionDatabase(path, read_only=True)


def set_database_path(path: str):
    """Set the database path for the application."""
    global db_path
    db_path = path
    os.environ[DATABASE_ENV] = path
    logger.info(f"Database path set to: {path}")


def outcome_to_dict(outcome: Outcome) -> dict:
    if isinstance(outcome, Winner):
        return {
            "winner": outcome.candidate,
            "votes": outcome.votes,
            "total_votes": outcome.total_votes,
            "share": float(outcome.share),
            "round": outcome.round_number,
        }
    return {
        "winner": None,
        "reason": outcome.reason.value,
        "tied": list(outcome.tied),
        "round": outcome.round_number,
    }


def round_to_dict(round_obj: IRVRound) -> dict:
    return {
        "round": round_obj.round_number,
        "active_candidates": list(round_obj.active_candidates),
        "vote_totals": dict(round_obj.vote_totals),
        "total_votes": round_obj.total_votes,
        "exhausted_ballots": round_obj.exhausted_ballots,
        "eliminated": list(round_obj.eliminated),
        "tied_for_last": round_obj.tied_for_last,
        "transfers": {k: dict(v) for k, v in round_obj.transfers.items()},
        "exhausted_by_transfer": round_obj.exhausted_by_transfer,
        "promoted": list(round_obj.promoted),
        "withdrawn": list(round_obj.withdrawn),
    }


def tabulation_response(tabulator: IRVTabulator, verify: bool = False) -> dict:
    response = {
        "threshold": str(tabulator.threshold),
        "tie_break": tabulator.tie_break.value,
        "outcome": outcome_to_dict(tabulator.outcome),
        "rounds": [round_to_dict(r) for r in tabulator.rounds],
    }
    if verify:
        response["verification"] = ReferenceVerifier(tabulator).verify().to_dict()
    return response


@app.get("/api/health")
async def health():
    return {"status": "ok"}


@app.post("/api/count")
async def count_ballots(request: CountRequest):
    """Normalize and count the posted ballots."""
    try:
        table = PreferenceTable.from_grid(request.candidates, request.ballots)
        config = CountConfig().override(
            threshold=str(request.threshold), tie_break=request.tie_break
        )
        election = count_table(table, config)
    except (BallotError, ValueError) as e:
        raise HTTPException(status_code=422, detail=str(e))

    response = tabulation_response(election.tabulator, verify=request.verify)
    response["invalid_ballots"] = [
        {"row": e.row, "reason": e.reason.value, "value": e.value}
        for e in election.normalization.invalid
    ]
    response["valid_ballots"] = len(election.normalization.ballots)
    return response


@app.get("/api/stored-count")
async def count_stored_election(
    threshold: str = "0.5", tie_break: TieBreak = TieBreak.SIMULTANEOUS
):
    """Count the election stored in the configured database."""
    database = get_database()
    try:
        with database:
            candidates, ballots = database.load_election()
    except duckdb.Error as e:
        logger.error(f"Could not read election database {database.db_path}: {e}")
        raise HTTPException(
            status_code=500, detail=f"Could not read election database: {e}"
        )
    except BallotError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        tabulator = IRVTabulator(
            candidates, ballots, threshold=threshold, tie_break=tie_break
        )
        tabulator.run_tabulation()
    except (BallotError, ValueError) as e:
        raise HTTPException(status_code=422, detail=str(e))
    return tabulation_response(tabulator)
