from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional, Set

import websockets
from websockets.server import WebSocketServerProtocol

from equity.errors import InvalidRequestError
from equity.estimator import validate_request
from equity.models import EquityConfig, EquityRequest
from equity.supersession import SupersessionController
from equity.worker import EquityWorker

LOGGER = logging.getLogger("odds_host")

# OddsServer glues the equity worker to spectator clients.
# Every network concern lives here; the estimator stays pure.


@dataclass
class ClientSession:
    websocket: WebSocketServerProtocol
    controller: SupersessionController = field(default_factory=SupersessionController)
    pending: Set[asyncio.Task] = field(default_factory=set)


class OddsServer:
    def __init__(self, config: Optional[EquityConfig] = None) -> None:
        self.config = config or EquityConfig()
        self.worker = EquityWorker(self.config)
        self.sessions: Dict[WebSocketServerProtocol, ClientSession] = {}
        self.lock = asyncio.Lock()

    async def start(self, host: str = "0.0.0.0", port: int = 8766) -> None:
        # websockets.serve keeps accepting clients until the process stops.
        try:
            async with websockets.serve(self._handle_connection, host, port):
                LOGGER.info("Odds server listening on %s:%s", host, port)
                await asyncio.Future()
        finally:
            self.worker.close()

    async def _handle_connection(self, websocket: WebSocketServerProtocol) -> None:
        # First message must be "hello" so the client knows the engine settings.
        hello = await self._read_message(websocket)
        if hello is None or hello.get("type") != "hello":
            await self._send_error(websocket, code="BAD_HELLO", msg="Expected hello")
            await websocket.close()
            return

        session = ClientSession(websocket=websocket)
        async with self.lock:
            self.sessions[websocket] = session
        LOGGER.info("Client connected (%s open)", len(self.sessions))
        await self._send_json(websocket, "welcome", {"config": self._config_payload()})

        try:
            async for raw in websocket:
                message = self._decode(raw)
                if message.get("type") == "calculate":
                    await self._handle_calculate(session, message)
                else:
                    await self._send_error(websocket, code="UNKNOWN_TYPE", msg="Unsupported message type")
        except websockets.ConnectionClosed:
            pass
        finally:
            async with self.lock:
                self.sessions.pop(websocket, None)
            LOGGER.info("Client disconnected (%s in flight)", len(session.pending))

    async def _handle_calculate(self, session: ClientSession, message: Dict[str, object]) -> None:
        request_id = message.get("request_id")
        try:
            # A newer id supersedes older work even if this request turns out invalid.
            session.controller.track(request_id)  # type: ignore[arg-type]
            request = EquityRequest.from_payload(message)
            validate_request(request)
        except InvalidRequestError as exc:
            LOGGER.warning("Rejected request %s code=%s reason=%s", request_id, exc.code, exc.msg)
            await self._send_error(session.websocket, code=exc.code, msg=exc.msg, request_id=request_id)
            return

        task = asyncio.create_task(self._run_request(session, request))
        session.pending.add(task)
        task.add_done_callback(session.pending.discard)

    async def _run_request(self, session: ClientSession, request: EquityRequest) -> None:
        try:
            result = await self.worker.submit(request)
        except InvalidRequestError as exc:
            await self._send_error(session.websocket, code=exc.code, msg=exc.msg, request_id=request.request_id)
            return
        if not session.controller.receive(result):
            LOGGER.debug("Dropped superseded result %s", request.request_id)
            return
        payload = result.to_payload()
        if result.is_error:
            payload["code"] = "COMPUTATION_FAILED"
            await self._send_json(session.websocket, "error", payload)
        else:
            await self._send_json(session.websocket, "result", payload)

    def _config_payload(self) -> Dict[str, object]:
        return {
            "monte_carlo_trials": self.config.monte_carlo_trials,
            "exact_max_unknown": self.config.exact_max_unknown,
            "timeout_s": self.config.timeout_s,
        }

    async def _send_json(self, websocket: WebSocketServerProtocol, msg_type: str, payload: Dict[str, object]) -> None:
        try:
            await websocket.send(self._envelope(msg_type, payload))
        except websockets.ConnectionClosed:
            pass

    async def _send_error(
        self,
        websocket: WebSocketServerProtocol,
        code: str,
        msg: str,
        request_id: object = None,
    ) -> None:
        payload: Dict[str, object] = {"code": code, "msg": msg}
        if request_id is not None:
            payload["request_id"] = request_id
        await self._send_json(websocket, "error", payload)

    def _envelope(self, msg_type: str, payload: Dict[str, object]) -> str:
        body = {"type": msg_type, "v": 1, "ts": datetime.now(timezone.utc).isoformat()}
        body.update(payload)
        return json.dumps(body)

    async def _read_message(self, websocket: WebSocketServerProtocol) -> Optional[Dict[str, object]]:
        try:
            raw = await asyncio.wait_for(websocket.recv(), timeout=5)
            return self._decode(raw)
        except (asyncio.TimeoutError, websockets.ConnectionClosed):
            return None

    def _decode(self, raw: str) -> Dict[str, object]:
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            return {}
        return message if isinstance(message, dict) else {}
