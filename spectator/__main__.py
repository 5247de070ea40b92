import argparse
import asyncio
import logging

from equity.models import EquityConfig
from .server import OddsServer


def main() -> None:
    # CLI doubles as documentation for the engine's tuning knobs.
    parser = argparse.ArgumentParser(description="Hold'em equity odds server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8766)
    parser.add_argument(
        "--trials",
        type=int,
        default=5_000,
        help="Monte Carlo trials per request when the board is too open to enumerate",
    )
    parser.add_argument(
        "--exact-max-unknown",
        type=int,
        default=2,
        help="Enumerate every runout when at most this many board cards are unknown",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="Wall-clock limit per request in seconds (0 disables); slower requests get uniform odds",
    )
    parser.add_argument(
        "--processes",
        action="store_true",
        help="Run the estimator in a separate process instead of a worker thread",
    )
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    config = EquityConfig(
        monte_carlo_trials=args.trials,
        exact_max_unknown=args.exact_max_unknown,
        timeout_s=args.timeout,
        use_processes=args.processes,
    )

    server = OddsServer(config)
    asyncio.run(server.start(host=args.host, port=args.port))


if __name__ == "__main__":
    main()
