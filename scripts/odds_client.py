#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional

import websockets
from websockets import WebSocketClientProtocol

from equity.cards import parse_cards
from equity.errors import InvalidRequestError
from equity.estimator import strength_label
from equity.supersession import SupersessionController

logging.basicConfig(level=logging.INFO)

# OddsClient types board states at the terminal and shows only the freshest odds.

HELP = """Enter one board state per line:
  AhKh 2c2d              preflop, two players
  AhKh 2c2d | AdKd2h     flop
  AhKh 2c2d Qs9s | AdKd2h7s
Empty line repeats the last state; q quits."""


def parse_board_state(line: str, request_id: int) -> Dict[str, Any]:
    """Turn ``"AhKh 2c2d | AdKd2h"`` into a calculate message."""
    hands_part, _, board_part = line.partition("|")
    players: List[Dict[str, Any]] = []
    for idx, token in enumerate(hands_part.split()):
        if len(token) != 4:
            raise InvalidRequestError(f"Hole cards must be four characters: {token}")
        parse_cards([token[:2], token[2:]])
        players.append({"player_id": f"P{idx + 1}", "hole_cards": [token[:2], token[2:]]})
    board_text = board_part.replace(" ", "")
    board = [board_text[i : i + 2] for i in range(0, len(board_text), 2)]
    parse_cards(board)
    return {
        "type": "calculate",
        "request_id": request_id,
        "players": players,
        "community_cards": board,
    }


class OddsClient:
    def __init__(self, url: str) -> None:
        self.url = url
        self.websocket: Optional[WebSocketClientProtocol] = None
        self.controller = SupersessionController()
        self.last_line = ""

    async def run(self) -> None:
        async with websockets.connect(self.url) as ws:
            self.websocket = ws
            await self._send({"type": "hello", "v": 1})
            print(HELP)
            reader = asyncio.create_task(self._read_loop())
            try:
                await self._input_loop()
            finally:
                reader.cancel()

    async def _input_loop(self) -> None:
        loop = asyncio.get_running_loop()
        while True:
            line = (await loop.run_in_executor(None, input, "board> ")).strip()
            if line.lower() in ("q", "quit", "exit"):
                break
            if not line:
                line = self.last_line
            if not line:
                continue
            try:
                message = parse_board_state(line, self.controller.latest_issued_id + 1)
            except InvalidRequestError as exc:
                print(f"Invalid input: {exc.msg}")
                continue
            self.controller.track(message["request_id"])
            self.last_line = line
            await self._send(message)

    async def _read_loop(self) -> None:
        assert self.websocket is not None
        async for raw in self.websocket:
            self._print_message(json.loads(raw))

    def _print_message(self, msg: Dict[str, Any]) -> None:
        msg_type = msg.get("type")
        request_id = msg.get("request_id")
        if request_id is not None and not self.controller.is_current(request_id):
            # Superseded by a newer board; not worth showing.
            return
        if msg_type == "welcome":
            print(f"Connected, config: {json.dumps(msg['config'])}")
        elif msg_type in ("result", "error") and "results" in msg:
            tag = "" if msg_type == "result" else f" [fallback: {msg.get('error')}]"
            print(f"\n>>> request {request_id} mode={msg.get('mode')} trials={msg.get('trials')}{tag}")
            for entry in msg["results"]:
                win = entry["win_percentage"]
                print(
                    f"  {entry['player_id']}: win {win:6.2f}%  tie {entry['tie_percentage']:6.2f}%"
                    f"  ({strength_label(win)})"
                )
        elif msg_type == "error":
            print(f"\nError {msg.get('code')}: {msg.get('msg')}")
        else:
            print(json.dumps(msg, indent=2))

    async def _send(self, payload: Dict[str, Any]) -> None:
        assert self.websocket is not None
        await self.websocket.send(json.dumps(payload))


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Hold'em odds terminal client")
    parser.add_argument("--url", default="ws://127.0.0.1:8766")
    return parser.parse_args(argv)


def main(argv: list[str]) -> None:
    args = parse_args(argv)
    client = OddsClient(url=args.url)
    try:
        asyncio.run(client.run())
    except KeyboardInterrupt:
        print("\nSession closed")


if __name__ == "__main__":
    main(sys.argv[1:])
