# batch_cli.py
import argparse, json, csv, sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

print("[BATCH] Booting...")

from dotenv import load_dotenv
_loaded = load_dotenv()
print(f"[BATCH] .env loaded: {_loaded}")

from scorefi.config import ScoringConfig
from scorefi.core.analyze import ScoringEngine

FIELDNAMES = ["address", "address_kind", "score", "risk_level",
              "payment_history", "amounts_owed", "credit_history", "credit_mix", "new_credit",
              "last_updated", "error"]


def load_addresses(path: str) -> list[str]:
    print(f"[BATCH] Loading addresses from: {path}")
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    addrs = []
    with p.open() as f:
        for line in f:
            s = line.strip()
            if not s or s.startswith("#"):
                continue
            addrs.append(s)
    print(f"[BATCH] Loaded {len(addrs)} addresses")
    return addrs


def flatten_result(res: dict) -> dict:
    bd = res.get("breakdown") or {}
    return {
        "address": res.get("address"),
        "address_kind": res.get("addressKind"),
        "score": f"{res.get('score', 0.0):.2f}",
        "risk_level": res.get("riskLevel"),
        "payment_history": f"{bd.get('paymentHistory', 0.0):.2f}",
        "amounts_owed": f"{bd.get('amountsOwed', 0.0):.2f}",
        "credit_history": f"{bd.get('creditHistory', 0.0):.2f}",
        "credit_mix": f"{bd.get('creditMix', 0.0):.2f}",
        "new_credit": f"{bd.get('newCredit', 0.0):.2f}",
        "last_updated": res.get("lastUpdated"),
        "error": "",
    }


def error_row(address: str, err: Exception) -> dict:
    row = {k: "" for k in FIELDNAMES}
    row["address"] = address
    row["error"] = f"{type(err).__name__}: {err}"
    return row


def run_batch(engine: ScoringEngine, addresses: list[str], concurrency: int = 2):
    """Score every address; failures become rows with an error column, never abort the batch."""
    rows, json_out = [], []

    def work(addr: str):
        print(f"[BATCH][WORK] Start {addr}")
        try:
            res = engine.compute_score(addr).to_dict()
            return flatten_result(res), res
        except Exception as e:
            print(f"[BATCH][WORK] FAIL {addr} -> {e}")
            return error_row(addr, e), {"address": addr, "error": str(e), "errorType": type(e).__name__}

    with ThreadPoolExecutor(max_workers=max(1, concurrency)) as ex:
        futs = {ex.submit(work, a): a for a in addresses}
        for fut in as_completed(futs):
            row, res = fut.result()
            rows.append(row)
            json_out.append(res)
            print(f"[BATCH] Result {row['address']} -> score={row['score']} tier={row['risk_level']}"
                  f"{' (err:' + row['error'] + ')' if row['error'] else ''}")
    return rows, json_out


def main(argv=None):
    ap = argparse.ArgumentParser(description="Score-Fi batch wallet scorer")
    ap.add_argument("--infile", required=True, help="Path to text file with one address/ENS name per line")
    ap.add_argument("--out-csv", default="batch_scores.csv", help="CSV output path")
    ap.add_argument("--out-json", default="batch_scores.json", help="JSON output path")
    ap.add_argument("--concurrency", type=int, default=2, help="Parallel wallets (1-3 safe on free provider plans)")
    args = ap.parse_args(argv)
    print(f"[BATCH] Args -> infile={args.infile} out_csv={args.out_csv} out_json={args.out_json} conc={args.concurrency}")

    try:
        config = ScoringConfig.from_env()
        addresses = load_addresses(args.infile)
    except (ValueError, FileNotFoundError) as e:
        print(f"[BATCH] ❌ {e}", file=sys.stderr)
        return 1
    print(f"[BATCH] Config -> {config.describe()}")

    with ScoringEngine(config) as engine:
        rows, json_out = run_batch(engine, addresses, args.concurrency)

    with open(args.out_csv, "w", newline="") as f:
        w = csv.DictWriter(f, fieldnames=FIELDNAMES)
        w.writeheader()
        w.writerows(rows)
    print(f"[BATCH] Wrote CSV -> {args.out_csv}")

    with open(args.out_json, "w") as f:
        json.dump(json_out, f, indent=2, default=str)
    print(f"[BATCH] Wrote JSON -> {args.out_json}")

    print("✅ Done. CSV →", args.out_csv, " JSON →", args.out_json)
    return 0


if __name__ == "__main__":
    sys.exit(main())
