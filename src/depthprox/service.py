"""FastAPI service exposing the latest proximity metrics.

Serves what the desktop viewer shows, for a Web UI or remote monitoring:
`/metrics` returns the most recent accepted frame's statistics and `/ws`
pushes them whenever a new frame is published.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from .pipeline import CaptureContext, ResultSlot


class MetricsModel(BaseModel):
    status: str
    t: Optional[float] = None
    avg_mm: Optional[float] = None
    min_mm: Optional[int] = None
    max_mm: Optional[int] = None
    labels: list[str] = []
    accepted: int = 0
    rejected: int = 0
    discarded: int = 0


def snapshot(slot: ResultSlot, ctx: Optional[CaptureContext] = None) -> MetricsModel:
    _, result = slot.latest()
    counters = {}
    if ctx is not None:
        counters = {
            "accepted": ctx.accepted,
            "rejected": ctx.rejected,
            "discarded": ctx.discarded,
        }
    if result is None:
        return MetricsModel(status="no data", **counters)
    d = result.display
    return MetricsModel(
        status="ok",
        t=result.timestamp,
        avg_mm=d.average_mm,
        min_mm=d.min_mm,
        max_mm=d.max_mm,
        labels=list(d.labels()),
        **counters,
    )


def make_app(
    slot: ResultSlot,
    ctx: Optional[CaptureContext] = None,
    push_interval: float = 0.1,
) -> FastAPI:
    app = FastAPI(title="Depth Proximity Service", version="0.1.0")

    @app.get("/health")
    async def health() -> dict[str, str]:  # pragma: no cover - trivial
        return {"status": "ok"}

    @app.get("/metrics", response_model=MetricsModel)
    async def get_metrics() -> MetricsModel:
        return snapshot(slot, ctx)

    @app.websocket("/ws")
    async def ws_metrics(ws: WebSocket) -> None:  # pragma: no cover - integration
        await ws.accept()
        last_seq = -1
        try:
            while True:
                seq, _ = slot.latest()
                if seq != last_seq:
                    last_seq = seq
                    await ws.send_text(snapshot(slot, ctx).model_dump_json())
                await asyncio.sleep(push_interval)
        except WebSocketDisconnect:
            pass

    return app


def main() -> None:  # pragma: no cover - manual run helper
    import logging

    import uvicorn

    from .capture import SyntheticCapture, SyntheticConfig
    from .session import CaptureSession, SetupResult

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    slot = ResultSlot()
    session = CaptureSession(
        SyntheticCapture(SyntheticConfig(noise_m=0.005)), sink=slot.publish, realtime=True
    )
    if session.start() is not SetupResult.SUCCESS:
        raise SystemExit("capture session failed to start")
    try:
        uvicorn.run(make_app(slot, session.ctx), host="127.0.0.1", port=8000)
    finally:
        session.stop()


if __name__ == "__main__":  # pragma: no cover
    main()
