from __future__ import annotations

import argparse
import json
import logging

from .airdrop import compute_ticket, is_eligible, prize_percent
from .checked import try_cast
from .clock import RpcClock
from .config import Settings
from .errors import MathError
from .curve import keys_for_pot, keys_received, lamports_for_keys
from .fees import split_purchase
from .project_constants import AIRDROP_TICKET_RANGE, LAMPORTS_PER_SOL
from .rpc import RpcClient
from .simulate import load_scenario, run_scenario, verify_report
from .teams import split_for, team_from_code


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def to_sol(lamports: int) -> float:
    return round(lamports / LAMPORTS_PER_SOL, 6)


def to_lamports(sol: str) -> int:
    whole, _, frac = sol.strip().partition(".")
    if len(frac) > 9:
        raise SystemExit(f"Too many decimals in {sol!r} (lamports have 9)")
    try:
        return try_cast(int(whole or "0") * LAMPORTS_PER_SOL + int(frac.ljust(9, "0") or "0"))
    except (ValueError, MathError):
        raise SystemExit(f"Not a SOL amount: {sol!r}") from None


def cmd_quote(args: argparse.Namespace) -> int:
    pot = to_lamports(args.pot)
    amount = to_lamports(args.amount)
    team = team_from_code(args.team)

    keys = keys_received(pot, amount)
    split = split_purchase(amount, split_for(team), has_referrer=args.referrer)

    print("--- KEY QUOTE ---")
    print(f"Pot           : {to_sol(pot)} SOL ({keys_for_pot(pot)} keys issued)")
    print(f"Contribution  : {to_sol(amount)} SOL")
    print(f"Team          : {team.name}")
    print(f"Keys received : {keys}")
    print(f"Next key costs: {to_sol(lamports_for_keys(pot, 1))} SOL")
    if keys < 1:
        print("(!) Too small - a purchase must buy at least 1 whole key")
    print("-" * 17)
    print(f"Community     : {split.community}")
    print(f"Airdrop       : {split.airdrop}")
    print(f"Next round    : {split.next_round}")
    print(f"Affiliate     : {split.affiliate}")
    print(f"Dividend A    : {split.dividend_a}")
    print(f"Dividend B    : {split.dividend_b}")
    print(f"Prize pool    : {split.prize}")
    if is_eligible(amount):
        print(f"Airdrop tier  : {prize_percent(amount)}% of the unawarded pool")
    return 0


def cmd_simulate(args: argparse.Namespace) -> int:
    settings = Settings.from_env(rpc_url_override=args.rpc_url)
    log = logging.getLogger("simulate")

    scenario = load_scenario(args.scenario)
    report = run_scenario(scenario, settings)

    failed = [r for r in report["results"] if not r["ok"]]
    log.info("Steps run       : %d", len(report["results"]))
    log.info("Steps rejected  : %d", len(failed))

    with open(args.out, "w", encoding="utf-8") as f:
        json.dump(report, f, indent=2)

    print("========================================")
    print("FOMO3D ROUND SIMULATION")
    print("========================================")
    for summary in report["rounds"]:
        state = "ended" if summary["ended"] else "active"
        print(f"Round {summary['round_id']} ({state})")
        print(f"  Keys        : {summary['accum_keys']}")
        print(f"  Pot         : {to_sol(summary['accum_sol_pot'])} SOL")
        print(f"  Prize pool  : {to_sol(summary['accum_prize_share'])} SOL")
        print(f"  Leader      : {summary['lead_player']}")
    print("----------------------------------------")
    for label, lamports in report["balances"].items():
        print(f"{label:<14}: {to_sol(lamports)} SOL")
    print("----------------------------------------")
    print(f"Wrote report: {args.out}")
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    settings = Settings.from_env(rpc_url_override=args.rpc_url)
    result = verify_report(args.report, settings)
    print("REPORT VERIFIED")
    print(f"Steps         : {result['steps']} ({result['failed_steps']} rejected)")
    print(f"Rounds        : {result['rounds']} ({result['settled_rounds']} settled)")
    return 0


def cmd_clock(args: argparse.Namespace) -> int:
    """Samples the cluster clock and shows the airdrop ticket it would produce."""
    settings = Settings.from_env(rpc_url_override=args.rpc_url)
    rpc = RpcClient(settings.require_rpc_url(), timeout_s=args.timeout)
    try:
        sample = RpcClock(rpc).sample()
    finally:
        rpc.close()

    print("--- CLUSTER CLOCK ---")
    print(f"Slot          : {sample.slot}")
    print(f"Epoch         : {sample.epoch}")
    print(f"Block time    : {sample.unix_timestamp}")
    print(f"Fingerprint   : {sample.fingerprint()}")
    if args.player:
        ticket, digest_hex, _ = compute_ticket(args.player, sample.fingerprint())
        print(f"Player        : {args.player}")
        print(f"Ticket        : {ticket} / {AIRDROP_TICKET_RANGE}")
        print(f"SHA-256       : {digest_hex}")
        print("(!) Anyone can compute this - the airdrop lottery is not secure")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="solana-fomo3d",
        description="FoMo3D round economy engine: quotes, replays and audits.",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    p.add_argument("--rpc-url", default=None, help="Override RPC URL (else use env).")
    p.add_argument("--timeout", type=float, default=60.0, help="RPC timeout seconds.")

    sub = p.add_subparsers(dest="cmd", required=True)

    q = sub.add_parser("quote", help="Keys and fee split for a contribution.")
    q.add_argument("--pot", default="0", help="Round pot so far, in SOL.")
    q.add_argument("--amount", required=True, help="Contribution in SOL.")
    q.add_argument("--team", type=int, default=0, help="Team code (0 whale, 1 bear, 2 snek, 3 bull).")
    q.add_argument("--referrer", action="store_true", help="Buyer has a referrer on record.")
    q.set_defaults(func=cmd_quote)

    s = sub.add_parser("simulate", help="Replay a scenario and write a report JSON.")
    s.add_argument("--scenario", required=True, help="Path to scenario JSON.")
    s.add_argument("--out", default="report.json", help="Report output JSON path.")
    s.set_defaults(func=cmd_simulate)

    v = sub.add_parser(
        "verify", help="Replay a report's scenario and check it deterministically."
    )
    v.add_argument("--report", required=True, help="Path to report.json.")
    v.set_defaults(func=cmd_verify)

    c = sub.add_parser("clock", help="Sample the cluster clock over RPC.")
    c.add_argument("--player", default=None, help="Show this player's airdrop ticket.")
    c.set_defaults(func=cmd_clock)

    return p


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    setup_logging(args.verbose)
    raise SystemExit(args.func(args))
