import argparse
import logging
from typing import List, Optional

from colony import Colony, StartConfig
from colony.settings import DEFAULT_MAP_SIZE, MAP_SIZES

logger = logging.getLogger("colony.main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the lunar colony simulation.")
    parser.add_argument(
        "--map-size", type=str.capitalize, default=None, choices=list(MAP_SIZES),
        help="Grid size; skips the start screen (default: Medium)"
    )
    parser.add_argument(
        "--no-ai", action="store_true",
        help="Disable generated goals and news"
    )
    parser.add_argument(
        "--basic", action="store_true",
        help="Economy, power and population only: flat ground, no life support"
    )
    parser.add_argument(
        "--auto-growth", action="store_true",
        help="Start with the Auto-Gov builder engaged"
    )
    parser.add_argument(
        "--seed", type=int, default=None,
        help="Seed for terrain and every random decision"
    )
    parser.add_argument(
        "--headless", action="store_true",
        help="Run without a window and print a summary"
    )
    parser.add_argument(
        "--ticks", type=int, default=50,
        help="Number of ticks to simulate in headless mode (default: 50)"
    )
    parser.add_argument(
        "--log-level", type=str, default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level"
    )
    return parser


def config_from_args(args: argparse.Namespace) -> StartConfig:
    map_size = MAP_SIZES[args.map_size] if args.map_size else DEFAULT_MAP_SIZE
    kwargs = dict(
        map_size=map_size,
        ai_enabled=not args.no_ai,
        auto_growth=args.auto_growth,
        seed=args.seed,
    )
    if args.basic:
        return StartConfig.basic(**kwargs)
    return StartConfig(**kwargs)


def run_headless(config: StartConfig, ticks: int) -> int:
    colony = Colony(config)
    try:
        colony.run(ticks)
    finally:
        colony.close()
    stats = colony.stats
    print(
        f"Sol {stats.day}: credits={stats.money} colonists={stats.population} "
        f"science={stats.science} power={stats.power_supply}/{stats.power_demand}"
    )
    if config.life_support:
        print(f"O2={stats.oxygen:.1f}% CO2={stats.co2:.0f}ppm food={stats.food:.0f}")
    for item in colony.news:
        print(f"[{item.type.value}] {item.text}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config = config_from_args(args)
    if args.ticks < 0:
        logger.error("--ticks must be non-negative, got %d", args.ticks)
        return 1
    if args.headless:
        return run_headless(config, args.ticks)

    from ui.colony_view import ColonyView
    from ui.start_screen import choose_start_config

    if args.map_size is None:
        chosen = choose_start_config(config)
        if chosen is None:
            print("No mission launched. Exiting.")
            return 0
        config = chosen

    colony = Colony(config)
    try:
        ColonyView(colony).run()
    except KeyboardInterrupt:
        print("\nStopping colony...")
    finally:
        colony.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
