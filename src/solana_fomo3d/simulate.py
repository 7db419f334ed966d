"""
Deterministic scenario replay.

A scenario is a JSON document naming players by label, funding them, and
listing instructions to run against a fresh in-memory host whose clock
only moves when a step says so:

    {
      "version": 1,
      "start_time": 1700000000,
      "players": {"alice": 2000000000, "bob": 2000000000},
      "steps": [
        {"op": "initiate_round"},
        {"op": "purchase", "player": "alice", "lamports": 1000000, "team": 1},
        {"op": "purchase", "player": "bob", "lamports": 500000000, "team": 3, "referrer": "alice"},
        {"op": "advance", "seconds": 90000},
        {"op": "end_round"},
        {"op": "withdraw", "player": "bob", "round": 1},
        {"op": "withdraw_community", "round": 1}
      ]
    }

Replaying the same scenario always yields the same report, which is what
`verify_report` relies on.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List

from .bank import Authority
from .clock import ManualClock
from .config import Settings
from .errors import InstructionResult
from .host import Host
from .instruction import (
    EndRound,
    InitiateGame,
    InitiateRound,
    PurchaseKeys,
    WithdrawCommunityRewards,
    WithdrawDividendBRewards,
    WithdrawSol,
)
from .processor import Processor
from .project_constants import PROGRAM_ID
from .records import make_identity

log = logging.getLogger(__name__)

CREATOR = "creator"
COMMUNITY = "community"
DIVIDEND_B = "dividend-b"


def _wallet_label(owner_label: str) -> str:
    return f"{owner_label}-wallet"


def _jsonable(value: Any) -> Any:
    if is_dataclass(value):
        return asdict(value)
    return value


class ScenarioRunner:
    def __init__(self, scenario: Dict[str, Any], settings: Settings | None = None) -> None:
        self.scenario = scenario
        self.settings = settings or Settings()
        self.version = int(scenario.get("version", self.settings.game_version))
        self.clock = ManualClock(
            int(scenario.get("start_time", 0)), slot=int(scenario.get("slot", 0))
        )
        self.host = Host.in_memory(self.clock, program_id=scenario.get("program_id", PROGRAM_ID))
        self.processor = Processor(self.host)
        self.labels: Dict[str, str] = {}

    def key(self, label: str) -> str:
        if label not in self.labels:
            self.labels[label] = make_identity(label)
        return self.labels[label]

    def signer(self, label: str) -> Authority:
        return Authority(self.key(label), is_signer=True)

    def setup(self) -> None:
        bank = self.host.bank
        for label in (CREATOR, COMMUNITY, DIVIDEND_B):
            bank.open_account(self.key(label), owner=self.key(label))
        for label in (COMMUNITY, DIVIDEND_B):
            bank.open_account(self.key(_wallet_label(label)), owner=self.key(label))
        for label, lamports in sorted(self.scenario.get("players", {}).items()):
            bank.open_account(self.key(label), owner=self.key(label))
            bank.mint_to(self.key(label), int(lamports))

        timers = self.scenario.get("timers", {})
        result = self.processor.process_instruction(
            self.signer(CREATOR),
            InitiateGame(
                version=self.version,
                community_wallet=self.key(_wallet_label(COMMUNITY)),
                dividend_b_wallet=self.key(_wallet_label(DIVIDEND_B)),
                round_init_time=int(timers.get("round_init_time", self.settings.round_init_time)),
                round_inc_time=int(timers.get("round_inc_time", self.settings.round_inc_time)),
                round_max_time=int(timers.get("round_max_time", self.settings.round_max_time)),
            ),
        )
        if not result.ok:
            raise RuntimeError(f"Could not initiate game: {result.message}")

    def run_step(self, step: Dict[str, Any]) -> Dict[str, Any]:
        op = step["op"]
        if "at" in step:
            self.clock.set(int(step["at"]), slot=step.get("slot"))

        if op == "advance":
            self.clock.advance(int(step.get("seconds", 0)), int(step.get("slots", 0)))
            return {"op": op, "ok": True, "now": self.clock.unix_timestamp}

        v = self.version
        if op == "initiate_round":
            caller, ix = step.get("funder", CREATOR), InitiateRound(v)
        elif op == "purchase":
            referrer = step.get("referrer")
            caller = step["player"]
            ix = PurchaseKeys(
                v,
                int(step["lamports"]),
                int(step.get("team", 0)),
                self.key(referrer) if referrer else None,
            )
        elif op == "end_round":
            caller, ix = step.get("caller", CREATOR), EndRound(v)
        elif op == "withdraw":
            caller, ix = step["player"], WithdrawSol(v, int(step["round"]))
        elif op == "withdraw_community":
            caller = step.get("caller", COMMUNITY)
            ix = WithdrawCommunityRewards(v, int(step["round"]), self.key(_wallet_label(COMMUNITY)))
        elif op == "withdraw_dividend_b":
            caller = step.get("caller", DIVIDEND_B)
            ix = WithdrawDividendBRewards(v, int(step["round"]), self.key(_wallet_label(DIVIDEND_B)))
        else:
            raise RuntimeError(f"Unknown scenario op: {op!r}")

        result = self.processor.process_instruction(self.signer(caller), ix)
        return self._describe(op, caller, result)

    def _describe(self, op: str, caller: str, result: InstructionResult) -> Dict[str, Any]:
        out: Dict[str, Any] = {"op": op, "caller": caller, "ok": result.ok}
        if result.ok:
            out["value"] = _jsonable(result.value)
        else:
            out["error"] = {
                "kind": result.kind.value if result.kind else None,
                "code": result.code,
                "message": result.message,
            }
        return out

    def run(self) -> Dict[str, Any]:
        self.setup()
        results = [self.run_step(step) for step in self.scenario.get("steps", [])]
        return {
            "results": results,
            "rounds": self.rounds(),
            "balances": self.balances(),
        }

    def rounds(self) -> List[Dict[str, Any]]:
        game = self.processor.get_game(self.version)
        out = []
        for round_id in range(1, game.round_id + 1):
            round_state = self.processor.get_round(round_id, self.version)
            summary = round_state.to_dict()
            summary["pot_balance"] = self.host.bank.balance(
                self.processor.pot_address(round_id, self.version)
            )
            out.append(summary)
        return out

    def balances(self) -> Dict[str, int]:
        return {
            label: self.host.bank.balance(key)
            for label, key in sorted(self.labels.items())
            if self.host.bank.exists(key)
        }


def run_scenario(scenario: Dict[str, Any], settings: Settings | None = None) -> Dict[str, Any]:
    outcome = ScenarioRunner(scenario, settings).run()
    return {
        "metadata": {
            "tool": "solana-fomo3d",
            "version": "1.0.0",
            "generated_at_utc": datetime.now(timezone.utc).isoformat(),
        },
        "scenario": scenario,
        **outcome,
    }


def load_scenario(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        scenario = json.load(f)
    if not isinstance(scenario, dict) or not isinstance(scenario.get("steps", []), list):
        raise RuntimeError(f"{path}: scenario must be a JSON object with a list of steps")
    return scenario


def verify_report(report_path: str, settings: Settings | None = None) -> Dict[str, Any]:
    with open(report_path, "r", encoding="utf-8") as f:
        report = json.load(f)

    recomputed = ScenarioRunner(report["scenario"], settings).run()
    for section in ("results", "rounds", "balances"):
        if recomputed[section] != report[section]:
            raise RuntimeError(f"{section} mismatch between report and replay")

    ended = [r for r in recomputed["rounds"] if r["ended"]]
    return {
        "ok": True,
        "steps": len(recomputed["results"]),
        "failed_steps": sum(1 for r in recomputed["results"] if not r["ok"]),
        "rounds": len(recomputed["rounds"]),
        "settled_rounds": len(ended),
    }
