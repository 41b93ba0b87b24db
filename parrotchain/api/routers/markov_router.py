from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from parrotchain.services.errors import MarkovError, NoAnchorMatchError
from parrotchain.services.markov import ChainModel
from parrotchain.utils.logger import setup_logger

logger = setup_logger(__name__)

router = APIRouter(prefix="/markov", tags=["markov"])


class AppendRequest(BaseModel):
    text: str = Field(..., min_length=1)


class FeedRequest(BaseModel):
    lines: list[str]


class ReplyRequest(BaseModel):
    text: str


def get_chain_model(request: Request) -> ChainModel:
    model = getattr(request.app.state, "chain_model", None)
    if model is None:
        raise HTTPException(status_code=503, detail="chain model not initialized")
    return model


@router.post("/append")
async def append(req: AppendRequest, model: ChainModel = Depends(get_chain_model)):
    try:
        await model.append(req.text)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except MarkovError as e:
        logger.error(f"[Markov] Append failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return {"ok": True}


@router.post("/feed")
async def feed(req: FeedRequest, model: ChainModel = Depends(get_chain_model)):
    if not any(line.strip() for line in req.lines):
        raise HTTPException(status_code=400, detail="lines are empty")
    try:
        count = await model.append_line_batch(req.lines)
    except MarkovError as e:
        logger.error(f"[Markov] Feed failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return {"ok": True, "data": {"appended": count}}


@router.post("/generate")
async def generate(model: ChainModel = Depends(get_chain_model)):
    try:
        text = await model.generate()
    except MarkovError as e:
        logger.error(f"[Markov] Generation failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return {"ok": True, "data": {"text": text}}


@router.post("/reply")
async def reply(req: ReplyRequest, model: ChainModel = Depends(get_chain_model)):
    try:
        text = await model.generate_reply(req.text)
    except NoAnchorMatchError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except MarkovError as e:
        logger.error(f"[Markov] Reply failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return {"ok": True, "data": {"text": text}}


@router.get("/chance")
async def chance(model: ChainModel = Depends(get_chain_model)):
    return {"ok": True, "data": {"speak": model.chance()}}
