"""Region-aware database routing and write failover"""
import logging

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse

from app.config import Settings
from app.errors import ReplicaWriteRejected

logger = logging.getLogger(__name__)

REGION_HEADER = "fly-region"
REPLAY_HEADER = "fly-replay"
GENERIC_ERROR = {"error": "Something went wrong"}

class RegionRouter:
    """
    Picks the database endpoint for this process and turns writes that hit
    a read-only replica into a replay directive for the upstream proxy.

    The proxy (Fly.io's edge) resubmits a request answered with
    `fly-replay: region=<primary>` to an instance in that region, so the
    service never retries anything itself.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.current_region = settings.fly_region
        self.primary_region = settings.primary_region

    @property
    def can_replay(self) -> bool:
        return self.settings.is_secondary_region

    @property
    def database_url(self) -> str:
        """Replica when running away from the primary region, else primary"""
        return self.settings.target_database_url

    @property
    def uses_replica(self) -> bool:
        return self.database_url != self.settings.database_url

    def regions(self) -> dict:
        """
        Region pair for response bodies.
        Unset regions are reported as null rather than left out of the object.
        """
        return {"fly": self.current_region, "primary": self.primary_region}

    def handle_error(self, exc: Exception) -> Response:
        """Map a failed request to a replay directive or a generic 500"""
        if isinstance(exc, ReplicaWriteRejected) and self.can_replay:
            message = f"Replaying request in {self.primary_region}"
            logger.debug(message)
            return PlainTextResponse(
                message,
                status_code=409,
                headers={REPLAY_HEADER: f"region={self.primary_region}"}
            )

        logger.error("Request failed", exc_info=exc)
        return JSONResponse(status_code=500, content=GENERIC_ERROR)

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            response = await call_next(request)
        except Exception as e:
            response = self.handle_error(e)
        response.headers[REGION_HEADER] = self.current_region or ""
        return response

    def install(self, app: FastAPI):
        """Register the failover and region header middleware"""
        app.middleware("http")(self.dispatch)
