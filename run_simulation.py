"""
Retro Tycoon Campaign Runner.

Usage:
    python run_simulation.py                           # Full 1983-1992 campaign
    python run_simulation.py --quarters 8              # Two years
    python run_simulation.py --strategy premium        # Research-heavy preset
    python run_simulation.py --no-export               # Fast mode (no export)
    python run_simulation.py --resume save.json.gz      # Continue a saved game
"""

import argparse
import logging
import os
import time

from retro_tycoon.simulation.campaign import Campaign


def main() -> None:
    """Run an unattended Retro Tycoon campaign."""
    parser = argparse.ArgumentParser(
        description="Retro Tycoon Campaign Runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_simulation.py --quarters 4 --no-export       # Fast test
  python run_simulation.py --seed 7 --strategy aggressive
  python run_simulation.py --streaming --format parquet
        """,
    )

    # Core campaign parameters
    parser.add_argument(
        "--seed",
        type=int,
        default=1983,
        help="Random seed; identical seeds replay identical campaigns (default: 1983)",
    )
    parser.add_argument(
        "--quarters",
        type=int,
        default=None,
        help="Number of quarters to play (default: until the game ends)",
    )
    parser.add_argument(
        "--strategy",
        type=str,
        choices=["balanced", "aggressive", "premium", "frugal"],
        default="balanced",
        help="Player strategy preset (default: balanced)",
    )
    parser.add_argument(
        "--company",
        type=str,
        default="Retro Computing",
        help="Player company name",
    )

    # Export parameters
    parser.add_argument(
        "--no-export",
        action="store_true",
        help="Disable CSV/Parquet/JSON export (faster)",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default="data/output",
        help="Directory for output artifacts",
    )
    parser.add_argument(
        "--streaming",
        action="store_true",
        help="Write tables incrementally as quarters complete",
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=["csv", "parquet"],
        default="csv",
        help="Output format: csv (default) or parquet",
    )
    parser.add_argument(
        "--resume",
        type=str,
        default=None,
        help="Continue from a saved game snapshot (.json.gz)",
    )
    parser.add_argument(
        "--save-game",
        type=str,
        default=None,
        help="Write the final game state to this snapshot path",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging verbosity (default: INFO)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    enable_export = not args.no_export

    mode_parts = [
        f"Seed={args.seed}",
        f"Strategy={args.strategy}",
        f"Quarters={args.quarters or 'all'}",
        f"Export={'Enabled' if enable_export else 'Disabled'}",
    ]
    if enable_export:
        mode_parts.append(f"Format={args.format}")
        if args.streaming:
            mode_parts.append("Streaming=On")

    print(f"Initializing Retro Tycoon ({', '.join(mode_parts)})...")

    campaign = Campaign(
        seed=args.seed,
        strategy=args.strategy,
        company_name=args.company,
        output_dir=args.output_dir,
        enable_logging=enable_export,
        streaming=args.streaming if enable_export else False,
        output_format=args.format,
    )

    if args.resume:
        campaign.load_game(args.resume)
        print(f"Resumed from {args.resume} at {campaign.state.year}Q{campaign.state.quarter}")

    print("Starting Campaign...")
    start_time = time.time()

    campaign.run(quarters=args.quarters)

    duration = time.time() - start_time
    print(f"\nCampaign completed in {duration:.2f} seconds.")

    # 1. Save tables and metrics
    campaign.save_results()
    if args.save_game:
        campaign.save_game(args.save_game)
        print(f"Game state saved to {args.save_game}")

    # 2. Print and save the campaign report
    report = campaign.generate_report()
    print("\n" + report + "\n")

    if enable_export:
        report_path = os.path.join(str(campaign.writer.output_dir), "campaign_report.txt")
        with open(report_path, "w") as f:
            f.write(report)
        print(f"Campaign report saved to {report_path}")


if __name__ == "__main__":
    main()
