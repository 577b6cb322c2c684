import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.dependencies import Services, build_services, get_services, get_session
from app.errors import FetchError
from app.schemas import (
    AnalyzeRequest,
    PushRequest,
    SubscriptionRequest,
    UnsubscribeRequest,
)
from app.services.channels import ChannelStore
from app.services.snapshots import SnapshotStore
from app.services.subscriptions import SubscriptionStore

logging.basicConfig(level=logging.INFO)

log = logging.getLogger(__name__)

router = APIRouter()


def _failure(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=status_code)


@asynccontextmanager
async def lifespan(api: FastAPI):
    import app.database
    import workers.refresh_worker

    await app.database.init_db()

    worker_task = None
    if settings.refresh_interval_minutes > 0:
        worker_task = asyncio.create_task(
            workers.refresh_worker.run_worker(api.state.services.scraper)
        )
    yield
    if worker_task:
        worker_task.cancel()


# ---------------------------------------------------------------------------
# Atualização de canais
# ---------------------------------------------------------------------------


@router.post("/analyze")
async def analyze(req: AnalyzeRequest, services: Services = Depends(get_services)):
    """
    {"mode": "cron"} → atualiza todos os canais ativos
    {"url": "..."}   → atualiza (ou cria) um único canal
    """
    try:
        if req.mode == "cron":
            results = await services.scraper.refresh_all()
            if not results:
                return {"success": True, "message": "No active channels"}
            return {"success": True, "results": results}

        url = (req.url or "").strip()
        if not url:
            return _failure("URL is required", 400)

        data = await services.scraper.refresh_one(url, req.userId)
        return {"success": True, **data}

    except FetchError as e:
        log.warning(f"Fetch falhou: {e}")
        return _failure(str(e), 502)
    except Exception as e:
        log.error(f"Erro em /analyze: {e}", exc_info=True)
        return _failure(str(e) or "Unknown error", 500)


@router.get("/channels/{channel_id}/snapshots")
async def channel_snapshots(
    channel_id: str,
    limit: int = 100,
    session: AsyncSession = Depends(get_session),
):
    channel = await ChannelStore(session).get(channel_id)
    if channel is None:
        return _failure("Channel not found", 404)

    history = await SnapshotStore(session).history(channel_id, limit=max(1, min(limit, 1000)))
    counts = [s.follower_count for s in history if s.follower_count is not None]
    trend = counts[-1] - counts[-2] if len(counts) >= 2 else 0

    snapshots = [
        {
            "followerCount": s.follower_count,
            "rawText": s.raw_text,
            "error": s.error,
            "createdAt": s.created_at.isoformat(),
        }
        for s in history
    ]
    return {
        "success": True,
        "channelId": channel.id,
        "channelName": channel.display_name,
        "platform": channel.platform,
        "followerGoal": channel.follower_goal,
        "snapshots": snapshots,
        "latest": snapshots[-1] if snapshots else None,
        "trend": trend,
    }


# ---------------------------------------------------------------------------
# Web Push
# ---------------------------------------------------------------------------


@router.post("/send-push")
async def send_push(req: PushRequest, services: Services = Depends(get_services)):
    if services.dispatcher is None:
        return _failure("Push not configured", 500)
    try:
        sent = await services.dispatcher.send(req.userId, req.title, req.body, req.url)
    except Exception as e:
        log.error(f"Erro em /send-push: {e}", exc_info=True)
        return _failure(str(e) or "Unknown error", 500)
    return {"success": True, "sent": sent}


@router.post("/push/subscriptions")
async def subscribe(req: SubscriptionRequest, session: AsyncSession = Depends(get_session)):
    _, created = await SubscriptionStore(session).upsert(
        req.userId, str(req.endpoint), req.keys.p256dh, req.keys.auth
    )
    return JSONResponse({"success": True, "created": created}, status_code=201 if created else 200)


@router.delete("/push/subscriptions")
async def unsubscribe(req: UnsubscribeRequest, session: AsyncSession = Depends(get_session)):
    removed = await SubscriptionStore(session).remove(req.userId, req.endpoint)
    return {"success": True, "removed": removed}


@router.get("/vapid-public-key")
async def vapid_public_key(services: Services = Depends(get_services)):
    if services.dispatcher is None:
        return _failure("Push not configured", 503)
    return {"publicKey": services.dispatcher.public_key}


@router.get("/health")
async def health():
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Aplicação
# ---------------------------------------------------------------------------


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return _failure(f"Invalid request: {field} {message}".replace("  ", " ").strip(), 400)


def create_app(services: Services | None = None) -> FastAPI:
    api = FastAPI(title="follower-tracker", lifespan=lifespan)
    api.state.services = services or build_services()
    api.add_exception_handler(RequestValidationError, _validation_error)
    api.include_router(router)
    return api


api = create_app()
