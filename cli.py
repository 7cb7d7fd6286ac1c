# cli.py
import argparse
import json
import sys
from dataclasses import replace

print("[CLI] Booting...")

from dotenv import load_dotenv
_loaded = load_dotenv()
print(f"[CLI] .env loaded: {_loaded}")

from scorefi.config import ScoringConfig
from scorefi.core.analyze import compute_score
from scorefi.errors import ScoringError

BAR_WIDTH = 30


def _bar(value: float) -> str:
    filled = int(round(max(0.0, min(100.0, value)) / 100 * BAR_WIDTH))
    return "█" * filled + "·" * (BAR_WIDTH - filled)


def render(result) -> str:
    out = result.to_dict()
    icon = {"Low": "✅", "Medium": "⚠️ ", "High": "❗"}.get(out["riskLevel"], "")
    lines = [
        f"Wallet: {out['address']}  ({out['addressKind']})",
        f"🧮 Credit Score: {out['score']:.2f}/100  {icon} {out['riskLevel'].upper()} RISK",
        "",
    ]
    labels = {
        "paymentHistory": "Payment History (35%)",
        "amountsOwed": "Amounts Owed    (30%)",
        "creditHistory": "Credit History  (15%)",
        "creditMix": "Credit Mix      (10%)",
        "newCredit": "New Credit      (10%)",
    }
    for key, label in labels.items():
        value = out["breakdown"][key]
        lines.append(f"  {label}  {_bar(value)} {value:6.2f}")
        if key in out["tips"]:
            lines.append(f"      💡 {out['tips'][key]}")
    lines.append("")
    lines.append(f"Last updated: {out['lastUpdated']}")
    return "\n".join(lines)


def main(argv=None):
    p = argparse.ArgumentParser(description="Score-Fi wallet credit score CLI")
    p.add_argument("--address", required=True, help="Wallet 0x address or ENS name")
    p.add_argument("--chain", default=None, help="Chain key (eth|sepolia|bsc); defaults to $CHAIN or eth")
    p.add_argument("--strict", action="store_true", help="Fail when the wallet/contract check is inconclusive")
    p.add_argument("--json", action="store_true", help="Print JSON only")
    args = p.parse_args(argv)
    print(f"[CLI] Args -> address={args.address} chain={args.chain} strict={args.strict} json={args.json}")

    try:
        config = ScoringConfig.from_env()
        overrides = {}
        if args.chain:
            overrides["chain"] = args.chain
        if args.strict:
            overrides["strict_classification"] = True
        if overrides:
            config = replace(config, **overrides)
    except ValueError as e:
        print(f"[CLI] Config FAIL -> {e}", file=sys.stderr)
        return 2
    print(f"[CLI] Config -> {config.describe()}")

    try:
        result = compute_score(args.address, config)
    except ScoringError as e:
        print(f"❌ {type(e).__name__}: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, default=str))
    else:
        print(render(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
